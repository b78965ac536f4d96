import asyncio
from uuid import uuid4

import pytest

from node_studio.core.execution import ExecutionContext
from node_studio.core.project import ProjectSettings


def test_execution_context_external_cancelled_trips_check():
    cancelled = False

    def external_cancelled() -> bool:
        return cancelled

    ctx = ExecutionContext(pass_id=uuid4(), external_cancelled=external_cancelled)

    ctx.check_cancelled()  # ok

    cancelled = True
    with pytest.raises(asyncio.CancelledError):
        ctx.check_cancelled()


def test_execution_context_cancel_trips_check():
    ctx = ExecutionContext(pass_id=uuid4())
    assert not ctx.is_cancelled

    ctx.cancel()

    assert ctx.is_cancelled
    with pytest.raises(asyncio.CancelledError):
        ctx.check_cancelled()


def test_execution_context_defaults_settings():
    ctx = ExecutionContext(pass_id=uuid4())
    assert ctx.settings == ProjectSettings()
