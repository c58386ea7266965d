from __future__ import annotations

from nexithra.terminal.audit_log import AuditLog


def test_append_and_snapshot() -> None:
    log = AuditLog()
    log.append("> open notes", "user")
    log.append("J.A.R.V.I.S.: Opening notes.", "ai")

    snapshot = log.snapshot()
    assert [m.type for m in snapshot] == ["user", "ai"]
    assert snapshot[0].to_dict() == {"id": 1, "content": "> open notes", "type": "user"}

    log.append("late", "system")
    assert len(snapshot) == 2


def test_ids_keep_increasing_after_clear() -> None:
    log = AuditLog()
    log.append("a", "user")
    log.append("b", "ai")
    log.clear()
    assert len(log) == 0

    message = log.append("c", "system")
    assert message.id == 3
