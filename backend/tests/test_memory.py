"""Tests for conversation sessions and the agent memory system."""
import time

import pytest

from coach.schemas.agents.memory import ConversationTurn
from coach.schemas.agents.routing import QueryAnalysis
from coach.services.agents.memory import ConversationSession, SessionManager


def _turn(query="How do I fix my offer?", agent="offer-analyzer", success=True, intent="fix",
          frameworks=None, contexts=None, insights=None):
    return ConversationTurn(
        user_query=query,
        agent_response="response",
        selected_agent=agent,
        query_analysis=QueryAnalysis(
            intent=intent,
            complexity="simple",
            urgency="medium",
            business_context=contexts or [],
            frameworks=frameworks or [],
            confidence=0.8,
        ),
        success=success,
        execution_time=100,
        insights=insights or [],
    )


# =============================================================================
# Sessions
# =============================================================================

class TestSessions:

    def test_message_history_is_bounded(self):
        session = ConversationSession("s1")
        for n in range(15):
            session.add_message("user", f"message {n}")

        assert len(session.messages) == 10
        assert session.messages[0]["content"] == "message 5"

    def test_assistant_message_records_analyzers(self):
        session = ConversationSession("s1")
        session.add_message("assistant", "answer", analyzers=["offer", "financial"])
        assert session.last_analyzers == ["offer", "financial"]

    def test_get_or_create_reuses_session(self, session_manager):
        first = session_manager.get_or_create_session()
        again = session_manager.get_or_create_session(first.session_id)

        assert again is first
        assert session_manager.session_count() == 1

    def test_expired_sessions_are_removed(self, session_manager):
        old = session_manager.get_or_create_session("old")
        old.last_accessed = time.time() - SessionManager.TTL_SECONDS - 1

        session_manager.get_or_create_session("new")

        assert session_manager.get_session("old") is None
        assert session_manager.session_count() == 1

    def test_session_count_stays_within_limit(self):
        manager = SessionManager()
        manager.MAX_SESSIONS = 3
        for n in range(5):
            manager.get_or_create_session(f"s{n}")
            time.sleep(0.001)

        assert manager.session_count() == 3
        assert manager.get_session("s4") is not None
        assert manager.get_session("s0") is None


# =============================================================================
# Learning patterns
# =============================================================================

class TestLearning:

    def test_preferred_agents(self, memory):
        memory.add_conversation_turn("s1", _turn(success=True))
        memory.add_conversation_turn("s1", _turn(success=True))
        memory.add_conversation_turn("s1", _turn(success=False))

        assert memory.get_personalization("s1").learning.preferred_agents["offer-analyzer"] == 1.5

    def test_failure_never_goes_negative(self, memory):
        memory.add_conversation_turn("s1", _turn(success=False))
        assert memory.get_personalization("s1").learning.preferred_agents["offer-analyzer"] == 0

    def test_failure_is_a_misunderstanding(self, memory):
        memory.add_conversation_turn("s1", _turn(success=False, intent="diagnose", agent="constraint-analyzer"))
        learning = memory.get_personalization("s1").learning

        assert learning.common_misunderstandings == ["diagnose - constraint-analyzer"]
        assert learning.successful_query_types == []

    def test_global_patterns_move_toward_outcome(self, memory):
        memory.add_conversation_turn("s1", _turn(agent="constraint-analyzer", success=True))
        memory.add_conversation_turn("s1", _turn(agent="psychology-optimizer", success=False))

        assert memory.global_patterns["constraint-analyzer-success"] == pytest.approx(0.5 * 0.95 + 0.05)
        assert memory.global_patterns["psychology-optimizer-success"] == pytest.approx(0.5 * 0.98)

    def test_seeded_patterns_are_not_agent_keys(self, memory):
        # Seeds are named by capability, not by agent, so agent outcomes start from 0.5
        memory.add_conversation_turn("s1", _turn(agent="constraint-analyzer", success=True))

        assert memory.global_patterns["constraint-analysis-success"] == 0.89
        assert memory.global_patterns["offer-optimization-success"] == 0.85
        assert memory.global_patterns["constraint-analyzer-success"] == pytest.approx(0.525)

    def test_framework_effectiveness(self, memory):
        memory.add_conversation_turn("s1", _turn(frameworks=["Grand Slam Offer"], success=True))
        memory.add_conversation_turn("s1", _turn(frameworks=["Grand Slam Offer"], success=False))

        assert memory.framework_effectiveness["Grand Slam Offer"] == {"success": 1, "total": 2}
        assert memory.get_personalization("s1").business.preferred_frameworks == ["Grand Slam Offer"]

    def test_history_is_bounded(self, memory):
        for _ in range(60):
            memory.add_conversation_turn("s1", _turn())
        assert len(memory.get_personalization("s1").history) == 50


# =============================================================================
# Contextual memory
# =============================================================================

class TestContextualMemory:

    def test_recent_topics_newest_first(self, memory):
        memory.add_conversation_turn("s1", _turn(query="my offer"))
        memory.add_conversation_turn("s1", _turn(query="my revenue"))

        assert memory.get_personalization("s1").context.recent_topics == ["revenue model", "offer optimization"]

    def test_ongoing_project_after_three_mentions(self, memory):
        for query in ("my offer", "unrelated", "offer again"):
            memory.add_conversation_turn("s1", _turn(query=query))
        assert memory.get_personalization("s1").context.ongoing_projects == []

        memory.add_conversation_turn("s1", _turn(query="the offer once more"))
        assert memory.get_personalization("s1").context.ongoing_projects == ["offer optimization"]

    def test_contextual_recommendations(self, memory):
        memory.add_conversation_turn("s1", _turn(
            query="my offer",
            frameworks=["Grand Slam Offer"],
            insights=["Start with offer optimization this week", "Hire a closer"],
        ))

        recommendations = memory.get_contextual_recommendations("s1", "What about pricing my offer?")

        assert recommendations.agent_suggestions == ["offer-analyzer"]
        assert recommendations.framework_recommendations == ["Grand Slam Offer"]
        assert recommendations.related_topics == ["offer optimization"]
        assert recommendations.previous_insights == ["Start with offer optimization this week"]

    def test_empty_conversation_context(self, memory):
        context = memory.get_conversation_context("nobody")

        assert context.dominant_intent == "unknown"
        assert context.average_complexity == "medium"
        assert context.communication_pattern == "balanced"

    def test_conversation_context(self, memory):
        memory.add_conversation_turn("s1", _turn(intent="plan", contexts=["saas"]))
        memory.add_conversation_turn("s1", _turn(intent="fix", contexts=["saas", "startup"]))
        memory.add_conversation_turn("s1", _turn(intent="fix"))

        context = memory.get_conversation_context("s1")
        assert context.dominant_intent == "fix"
        assert context.business_focus == ["saas", "startup"]
        assert len(context.recent_queries) == 3


# =============================================================================
# Feedback, analytics and keys
# =============================================================================

class TestFeedbackAndAnalytics:

    def test_feedback_adjusts_preference(self, memory):
        turn = _turn()
        memory.add_conversation_turn("s1", turn, user_id="u1")

        assert memory.update_user_feedback("s1", turn.id, "negative", user_id="u1")
        personalization = memory.get_personalization("s1", user_id="u1")
        assert personalization.learning.preferred_agents["offer-analyzer"] == 0
        assert personalization.history[0].user_feedback == "negative"

    def test_feedback_for_unknown_turn(self, memory):
        assert memory.update_user_feedback("s1", "missing", "positive") is False

    def test_memory_is_keyed_by_user(self, memory):
        memory.add_conversation_turn("session-a", _turn(), user_id="u1")
        memory.add_conversation_turn("session-b", _turn(), user_id="u1")

        assert memory.get_memory_analytics("session-c", user_id="u1").total_conversations == 2

    def test_analytics(self, memory):
        memory.add_conversation_turn("s1", _turn(success=True))
        memory.add_conversation_turn("s1", _turn(success=False))

        analytics = memory.get_memory_analytics("s1")
        assert analytics.total_conversations == 2
        assert analytics.success_rate == 0.5
        assert analytics.average_execution_time == 100
        assert analytics.top_agents[0].agent == "offer-analyzer"

    def test_clear_memory(self, memory):
        memory.add_conversation_turn("s1", _turn(), user_id="u1")

        assert memory.clear_memory("s1", user_id="u1") is True
        assert memory.clear_memory("s1", user_id="u1") is False
        assert memory.get_memory_analytics("s1", user_id="u1").total_conversations == 0
