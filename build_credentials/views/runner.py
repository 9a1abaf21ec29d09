"""Driver for the credential view state machine."""

import structlog

from build_credentials.context import Context
from build_credentials.exceptions import CancelledByOperatorError, WorkflowError
from build_credentials.views.android import open_view
from build_credentials.views.types import View, ViewKind

log = structlog.get_logger(__name__)


class ViewRunner:
    """Opens views one after another until a view returns None.

    A runner drives one workflow at a time. Errors raised by a view stop the
    loop and propagate unchanged; remote writes already committed by earlier
    views are not rolled back, later views simply never run. Operator
    cancellation is handled the same way.

    Attributes:
        history: Kinds of the views opened so far, in order
    """

    def __init__(self) -> None:
        self.history: list[ViewKind] = []
        self._running = False

    async def run(self, context: Context, initial_view: View) -> None:
        """Run the workflow starting at ``initial_view``.

        Raises:
            WorkflowError: If this runner is already driving a workflow
            CancelledByOperatorError: If the operator aborted a prompt
            BuildCredentialsError: Whatever a view raised
        """
        if self._running:
            raise WorkflowError("A credentials workflow is already running on this runner")
        self._running = True

        current: View | None = initial_view
        try:
            while current is not None:
                self.history.append(current.kind)
                current = await open_view(current, context)
        except CancelledByOperatorError:
            log.info("workflow_cancelled", view=str(self.history[-1]), experience=initial_view.experience_name)
            raise
        except Exception as e:
            log.error(
                "workflow_failed",
                view=str(self.history[-1]),
                experience=initial_view.experience_name,
                error=str(e),
            )
            raise
        finally:
            self._running = False

        log.info("workflow_completed", views=[str(kind) for kind in self.history])


async def run_credentials_manager(context: Context, view: View) -> None:
    """Run ``view`` and its successors with a fresh runner."""
    await ViewRunner().run(context, view)
