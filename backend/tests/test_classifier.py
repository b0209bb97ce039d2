"""Tests for the query classifier."""
import pytest

from coach.services.agents.classifier import QueryClassifier
from coach.services.agents.keywords import ClassifierTables


@pytest.fixture
def classifier():
    return QueryClassifier()


ALL_ANALYZERS = [
    "offer",
    "money-model",
    "financial",
    "psychology",
    "implementation",
    "constraint-analyzer",
    "coaching-methodology",
]


class TestSelectAnalyzers:

    def test_constraint_question_selects_only_constraint(self, classifier):
        selected = classifier.select_analyzers("What's my biggest business constraint right now?", "diagnostic")
        assert selected == ["constraint-analyzer"]

    def test_offer_and_cac(self, classifier):
        selected = classifier.select_analyzers("Is my offer worth the CAC I pay?", "diagnostic")

        assert "offer" in selected
        assert "financial" in selected
        assert selected == ["offer", "financial", "constraint-analyzer"]

    def test_strategic_selects_everything(self, classifier):
        assert classifier.select_analyzers("hello", "strategic") == ALL_ANALYZERS

    def test_results_in_execution_order(self, classifier):
        selected = classifier.select_analyzers(
            "coaching on my roadmap, customer timing, upsell revenue, ltv and pricing", "implementation"
        )
        assert selected == ALL_ANALYZERS

    def test_opt_out_drops_constraint(self, classifier):
        assert classifier.select_analyzers("just tell me my ltv", "diagnostic") == ["financial"]

    def test_never_empty(self, classifier):
        assert classifier.select_analyzers("just tell me", "diagnostic") == ["constraint-analyzer"]
        assert classifier.select_analyzers("", "diagnostic") == ["constraint-analyzer"]

    def test_no_duplicates(self, classifier):
        selected = classifier.select_analyzers("constraint bottleneck constraint", "diagnostic")
        assert selected == ["constraint-analyzer"]

    def test_custom_tables(self):
        tables = ClassifierTables(keyword_sets={"offer": ["widget"]}, always_include="offer")
        classifier = QueryClassifier(tables)

        assert classifier.select_analyzers("widget", "diagnostic") == ["offer"]
