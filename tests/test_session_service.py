from __future__ import annotations

import pytest

from splitterm.errors import ExitCode, SplitTermError
from splitterm.terminal import SessionService, SessionSpec, SessionState


class _ExplodingBackend:
    def spawn(self, session_id: str, *, spec: SessionSpec, on_spawned: object) -> object:
        raise OSError("fork failed")


def test_create_assigns_sequential_ids_and_records_events(service, backend) -> None:
    first = service.create()
    second = service.create()

    assert [first.session_id, second.session_id] == ["t1", "t2"]
    assert [session_id for session_id, _spec in backend.spawned] == ["t1", "t2"]
    assert [event.step for event in service.list_events()] == ["create", "create"]
    assert service.get("t2") is second


def test_create_wraps_backend_failures() -> None:
    service = SessionService(_ExplodingBackend(), spec_factory=lambda: SessionSpec(argv=("/bin/sh",)))

    with pytest.raises(SplitTermError) as exc_info:
        service.create()

    assert exc_info.value.code == ExitCode.SPAWN_ERROR
    assert "fork failed" in exc_info.value.hint
    assert service.list_sessions() == []


def test_empty_command_is_rejected_without_registering(backend) -> None:
    service = SessionService(backend, spec_factory=lambda: SessionSpec(argv=()))

    with pytest.raises(SplitTermError):
        service.create()
    assert service.list_sessions() == []


def test_exited_marks_known_sessions_only(service) -> None:
    session = service.create()

    assert service.exited("t1", 3) is session
    assert session.state == SessionState.EXITED
    assert service.exited("t99", 0) is None


def test_remove_destroys_once(service, backend) -> None:
    session = service.create()

    service.remove(session)
    service.remove(session)

    assert backend.destroyed == ["t1"]
    assert service.get("t1") is None
    assert [event.step for event in service.list_events()][-1] == "remove"


def test_clear_events(service) -> None:
    service.create()
    service.clear_events()

    assert service.list_events() == []
