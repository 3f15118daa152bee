"""Tests for logging context propagation."""

import pytest

from jobwizard.logging.context import (
    clear_log_context,
    get_log_context,
    log_context,
    pop_log_context,
    push_log_context,
)


@pytest.fixture(autouse=True)
def clean_context():
    clear_log_context()
    yield
    clear_log_context()


def test_empty_context():
    assert get_log_context() == {}


def test_push_and_pop():
    token = push_log_context(run_id="abc123", source_id="greenhouse:acme")
    assert get_log_context() == {"run_id": "abc123", "source_id": "greenhouse:acme"}

    pop_log_context(token)
    assert get_log_context() == {}


def test_nested_push_and_override():
    """Inner pushes merge over outer ones and pop back in reverse order."""
    outer = push_log_context(run_id="abc123")
    middle = push_log_context(source_id="lever:globex")
    inner = push_log_context(run_id="xyz789")

    assert get_log_context() == {"run_id": "xyz789", "source_id": "lever:globex"}

    pop_log_context(inner)
    assert get_log_context() == {"run_id": "abc123", "source_id": "lever:globex"}
    pop_log_context(middle)
    assert get_log_context() == {"run_id": "abc123"}
    pop_log_context(outer)
    assert get_log_context() == {}


def test_context_manager_nested():
    with log_context(run_id="abc123"):
        with log_context(source_id="personio:initech") as scope:
            assert scope.kwargs == {"source_id": "personio:initech"}
            assert get_log_context() == {"run_id": "abc123", "source_id": "personio:initech"}

        assert get_log_context() == {"run_id": "abc123"}

    assert get_log_context() == {}


def test_context_manager_restores_on_exception():
    with pytest.raises(ValueError):
        with log_context(run_id="abc123"):
            raise ValueError("fetch failed")

    assert get_log_context() == {}


def test_clear_context():
    push_log_context(run_id="abc123")

    clear_log_context()

    assert get_log_context() == {}


def test_returns_a_copy():
    with log_context(run_id="abc123"):
        context = get_log_context()
        context["source_id"] = "modified"

        assert get_log_context() == {"run_id": "abc123"}
