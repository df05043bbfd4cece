"""Tests for per-run collections."""

from reportxray.context import (
    EvidenceCollection,
    IterationParameterCollection,
    PluginEventEmitter,
    ScreenshotCollection,
)


class TestEvidenceCollection:
    """Tests for evidence collected during a run."""

    def test_per_issue(self):
        collection = EvidenceCollection()
        collection.add_evidence("CYP-1", {"filename": "a.txt"})
        collection.add_evidence("CYP-1", {"filename": "b.txt"})
        assert [e["filename"] for e in collection.get_evidence("CYP-1")] == ["a.txt", "b.txt"]
        assert collection.get_evidence("CYP-2") == []

    def test_returns_copy(self):
        collection = EvidenceCollection()
        collection.get_evidence("CYP-1").append({"filename": "x"})
        assert collection.get_evidence("CYP-1") == []


class TestIterationParameterCollection:
    """Tests for iteration parameters."""

    def test_by_key_and_title(self):
        collection = IterationParameterCollection()
        collection.set_iteration_parameters("CYP-1", "CYP-1 chrome", {"browser": "chrome"})
        assert collection.get_iteration_parameters("CYP-1", "CYP-1 chrome") == {"browser": "chrome"}
        assert collection.get_iteration_parameters("CYP-1", "CYP-1 firefox") == {}


class TestScreenshotCollection:
    """Tests for screenshot bookkeeping."""

    def test_in_order(self):
        collection = ScreenshotCollection()
        collection.add_screenshot({"path": "/a.png"})
        collection.add_screenshot({"path": "/b.png"})
        assert collection.get_screenshots() == [{"path": "/a.png"}, {"path": "/b.png"}]


class TestPluginEventEmitter:
    """Tests for upload notifications."""

    def test_listeners_called_in_order(self):
        emitter = PluginEventEmitter()
        calls = []
        emitter.on("upload:cypress", lambda payload: calls.append(("first", payload)))
        emitter.on("upload:cypress", lambda payload: calls.append(("second", payload)))
        emitter.on("upload:cucumber", lambda payload: calls.append(("other", payload)))
        emitter.emit("upload:cypress", {"testExecutionIssueKey": "CYP-1"})
        assert calls == [
            ("first", {"testExecutionIssueKey": "CYP-1"}),
            ("second", {"testExecutionIssueKey": "CYP-1"}),
        ]

    def test_no_listeners(self):
        PluginEventEmitter().emit("upload:cypress", {})
