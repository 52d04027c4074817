"""Behaviour tests for waiting on the code highlighter.

``highlighter_readiness.feature`` starts a render while a deliberately slow
highlighter factory is still running and checks that the render blocks until
the highlighter is ready instead of returning unhighlighted code.
"""

from __future__ import annotations

import threading
import typing as typ
from pathlib import Path

import pytest
from bs4 import BeautifulSoup
from pytest_bdd import given, scenarios, then, when

from pubmarkup.highlighting import CodeHighlighter, HighlighterLoader
from pubmarkup.markup import MarkupPipeline, RenderedMarkup

FEATURE_FILE = (
    Path(__file__).resolve().parents[2] / "features" / "highlighter_readiness.feature"
)
scenarios(FEATURE_FILE)


@pytest.fixture
def scenario_state() -> dict[str, object]:
    """Return a mutable dict used to share scenario state across BDD steps."""
    return {}


@given("a pipeline whose highlighter is still loading")
def given_loading_pipeline(scenario_state: dict[str, object]) -> None:
    """Build a pipeline whose highlighter factory blocks on an event."""
    release = threading.Event()
    calls: list[int] = []

    def factory() -> CodeHighlighter:
        calls.append(1)
        release.wait(5)
        return CodeHighlighter.from_names("default", "monokai")

    scenario_state["release"] = release
    scenario_state["calls"] = calls
    scenario_state["pipeline"] = MarkupPipeline(
        loader=HighlighterLoader(factory)
    ).start()


@when("I start rendering a fenced Python code block")
def when_start_render(scenario_state: dict[str, object]) -> None:
    """Render on a worker thread and confirm it is still waiting."""
    pipeline = typ.cast("MarkupPipeline", scenario_state["pipeline"])
    results: list[RenderedMarkup] = []
    worker = threading.Thread(
        target=lambda: results.append(
            pipeline.render("doc", "```python\nprint('hi')\n```\n")
        )
    )
    worker.start()
    worker.join(0.1)
    assert not results, "render returned before the highlighter was ready"
    scenario_state["worker"] = worker
    scenario_state["results"] = results


@when("the highlighter finishes loading")
def when_highlighter_ready(scenario_state: dict[str, object]) -> None:
    """Release the factory and wait for the render to complete."""
    typ.cast("threading.Event", scenario_state["release"]).set()
    typ.cast("threading.Thread", scenario_state["worker"]).join(5)


@then("the rendered code block uses the highlighter themes")
def then_highlighted(scenario_state: dict[str, object]) -> None:
    """Assert the render produced dual-theme highlighted code."""
    results = typ.cast("list[RenderedMarkup]", scenario_state["results"])
    assert len(results) == 1
    pre = BeautifulSoup(results[0].html, "html.parser").find("pre")
    assert pre is not None
    assert "highlight-themes" in pre["class"]
    assert "--hl-dark-bg" in pre["style"]


@then("the highlighter was initialized once")
def then_single_init(scenario_state: dict[str, object]) -> None:
    """Assert the factory ran exactly once."""
    assert scenario_state["calls"] == [1]
