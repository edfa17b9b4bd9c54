import pytest

from deenly.services import entitlements, memories, session


@pytest.fixture(autouse=True)
def reset_process_state():
    """Sessions, daily counters and guest notes are process-local."""
    yield
    session.reset_sessions()
    entitlements.reset_counts()
    memories.reset_guest_memories()
