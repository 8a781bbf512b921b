import logging
import threading

from apps.core.attendance.services import summarize_teacher_attendance

from .fixtures import initial_state
from .services import DispatchContext, dispatch_action


logger = logging.getLogger(__name__)


class DashboardStore:
    """Holds the current dashboard snapshot for one session.

    Every dispatch replaces the snapshot; callers must treat earlier snapshots as stale.
    """

    def __init__(self, state, context=None):
        self._state = state
        self._context = context or DispatchContext()
        self._lock = threading.Lock()

    @property
    def state(self):
        return self._state

    @property
    def context(self):
        return self._context

    def try_dispatch(self, action):
        with self._lock:
            result = dispatch_action(self._state, action, self._context)
            if result.ok and result.state is not self._state:
                logger.info('Applied dashboard action %s.', action.type)
            self._state = result.state
        return result

    def dispatch(self, action):
        return self.try_dispatch(action).state

    def get_attendance_summary_for_teacher(self, teacher_id, *, today=None):
        return summarize_teacher_attendance(self._state, teacher_id, today=today)


_store = None
_store_lock = threading.Lock()


def get_store():
    global _store
    with _store_lock:
        if _store is None:
            _store = DashboardStore(initial_state())
            logger.info('Dashboard store seeded with %d kindergartens.', len(_store.state.kindergartens))
        return _store


def reset_store(state=None, context=None):
    """Replace the process-wide store; with no state the seed dataset is loaded again."""
    global _store
    if state is None:
        state = initial_state()
    with _store_lock:
        _store = DashboardStore(state, context)
        return _store
