"""Tests for evidence predicates and the inference engine."""

import pytest

from promptqueue.core.errors import EvidenceUnavailable
from promptqueue.core.models import BUSY, IDLE, ElementEvidence, EnvironmentSnapshot
from promptqueue.inference import get_predicates
from promptqueue.inference.engine import InferenceEngine
from promptqueue.inference.predicates import (
    AnimationPredicate,
    EllipsisPredicate,
    EvidencePredicate,
    MarkerAttributePredicate,
    StatusLexiconPredicate,
    StopControlPredicate,
)


def snap(*elements: dict) -> EnvironmentSnapshot:
    return EnvironmentSnapshot(elements=[ElementEvidence(**e) for e in elements])


def idle_page() -> EnvironmentSnapshot:
    return snap(
        {"tag": "button", "text": "Send", "aria_label": "Send prompt"},
        {"tag": "div", "text": "Here is the answer you asked for."},
        {"tag": "span", "text": "ChatGPT can make mistakes."},
        {"tag": "div", "role": "status", "text": ""},
        {"tag": "div", "class_name": "flex flex-col"},
    )


# ── Predicates ────────────────────────────────────────────────────────────────


def test_stop_button_by_text():
    match = StopControlPredicate().evaluate(snap({"tag": "button", "text": "Stop generating"}))
    assert match.matched is True
    assert "Stop generating" in match.label


def test_stop_button_by_aria_label():
    s = snap({"tag": "button", "text": "", "aria_label": "Stop streaming"})
    assert StopControlPredicate().evaluate(s).matched is True


def test_stop_text_outside_button_ignored():
    s = snap({"tag": "div", "text": "Stop generating"})
    assert StopControlPredicate().evaluate(s).matched is False


def test_status_lexicon():
    for word in ["Generating…", "Thinking", "Loading response", "Receiving data"]:
        s = snap({"tag": "div", "role": "status", "text": word})
        assert StatusLexiconPredicate().evaluate(s).matched is True, word


def test_status_without_busy_words():
    s = snap({"tag": "div", "role": "status", "text": "Copied to clipboard"})
    assert StatusLexiconPredicate().evaluate(s).matched is False


def test_ellipsis_glyph_visible():
    for text in ["...", "…", "Loading", "loading...", "streaming…"]:
        s = snap({"tag": "span", "text": text})
        assert EllipsisPredicate().evaluate(s).matched is True, text


def test_ellipsis_hidden_ignored():
    s = snap({"tag": "span", "text": "...", "visible": False})
    assert EllipsisPredicate().evaluate(s).matched is False


def test_ellipsis_inside_prose_ignored():
    s = snap({"tag": "div", "text": "Wait... what did you mean?"})
    assert EllipsisPredicate().evaluate(s).matched is False


def test_animation_class():
    s = snap({"tag": "div", "class_name": "h-4 w-4 animate-spin"})
    match = AnimationPredicate().evaluate(s)
    assert match.matched is True
    assert match.label.startswith("class=")


def test_animation_style():
    s = snap({"tag": "div", "animation_name": "pulse-size"})
    match = AnimationPredicate().evaluate(s)
    assert match.matched is True
    assert match.label == "animation=pulse-size"


def test_marker_attribute():
    s = snap({"tag": "div", "attributes": {"data-streaming": "true"}})
    assert MarkerAttributePredicate().evaluate(s).matched is True
    s = snap({"tag": "div", "attributes": {"data-generating": "false"}})
    assert MarkerAttributePredicate().evaluate(s).matched is False


def test_predicates_tolerate_empty_snapshot():
    empty = EnvironmentSnapshot()
    for predicate in get_predicates():
        assert predicate.evaluate(empty).matched is False


# ── Engine ────────────────────────────────────────────────────────────────────


def test_default_predicate_order():
    names = [p.name for p in get_predicates()]
    assert names == ["stop_control", "status_lexicon", "marker_attribute", "ellipsis", "animation"]


def test_idle_page_is_idle():
    assert InferenceEngine().infer(idle_page()) == IDLE


def test_empty_snapshot_is_idle():
    assert InferenceEngine().infer(EnvironmentSnapshot()) == IDLE


def test_any_predicate_makes_busy():
    page = idle_page()
    page.elements.append(ElementEvidence(tag="button", aria_label="Stop generating"))
    engine = InferenceEngine()
    assert engine.infer(page) == BUSY
    assert engine.explain(page).predicate == "stop_control"


def test_infer_is_idempotent():
    engine = InferenceEngine()
    page = snap({"tag": "div", "role": "status", "text": "Thinking"})
    assert engine.infer(page) == engine.infer(page) == BUSY
    quiet = idle_page()
    assert engine.infer(quiet) == engine.infer(quiet) == IDLE


def test_order_does_not_change_verdict():
    page = snap({"tag": "div", "class_name": "result-streaming"})
    forward = InferenceEngine(get_predicates())
    backward = InferenceEngine(list(reversed(get_predicates())))
    assert forward.infer(page) == backward.infer(page) == BUSY


class ExplodingPredicate(EvidencePredicate):
    name = "exploding"

    def match(self, snapshot):
        raise EvidenceUnavailable("structure missing")


class TypoPredicate(EvidencePredicate):
    name = "typo"

    def match(self, snapshot):
        return snapshot.elements[42].text  # IndexError on small pages


def test_flaky_predicate_never_crashes_inference():
    engine = InferenceEngine([ExplodingPredicate(), TypoPredicate(), StopControlPredicate()])
    assert engine.infer(EnvironmentSnapshot()) == IDLE
    busy = snap({"tag": "button", "text": "Stop"})
    assert engine.infer(busy) == BUSY


def test_failing_predicate_reports_not_matched():
    result = ExplodingPredicate().evaluate(EnvironmentSnapshot())
    assert result.matched is False
    assert result.label is None


def test_snapshot_accepts_partial_evidence():
    s = EnvironmentSnapshot.model_validate({"elements": [{"tag": "button"}, {}]})
    assert len(s.elements) == 2
    assert s.elements[1].animation_name == "none"
    assert InferenceEngine().infer(s) == IDLE


def test_unreadable_page_is_unavailable_evidence():
    snapshot = EnvironmentSnapshot(collected=False)
    with pytest.raises(EvidenceUnavailable):
        snapshot.by_tag("button")
    for predicate in get_predicates():
        result = predicate.evaluate(snapshot)
        assert result.matched is False
    assert InferenceEngine().infer(snapshot) == IDLE
