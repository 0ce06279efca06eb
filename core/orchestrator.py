"""
Agent Orchestrator - routes each query to a tracker or to text generation.

Per query: load the user's context, classify intent, then either run the
emergency script, dispatch to the intent's tracker, or answer a general
question from guidelines plus the local model. Nothing is remembered between
calls; a follow-up is simply a new, fuller query.
"""

from typing import Dict, Optional

from core.categories import Intent
from core.guidelines import format_guidelines_for_prompt, search_guidelines
from core.prompt_builder import build_conversation, build_emergency_message
from utils.helpers import make_response, truncate_text
from utils.logger import get_logger

INVALID_QUERY_MESSAGE = "Please ask a valid question."
NO_PROFILE_MESSAGE = (
    "Your profile is not set up yet. Please complete your profile in the Profile section "
    "to get personalized guidance."
)


class AgentOrchestrator:
    """
    Query state machine for a single user request.

    Every failure below the top level becomes a response dict; run() never
    raises to its caller.
    """

    def __init__(
        self,
        context_cache,
        classifier,
        registry,
        generator=None,
        guideline_config: Optional[Dict] = None,
        default_user_id: str = "default",
    ):
        """
        Initialize orchestrator.

        Args:
            context_cache: ContextCache providing the UserContext
            classifier: IntentClassifier instance
            registry: TrackerRegistry with one handler per routable intent
            generator: Object with async generate(conversation) -> str (optional)
            guideline_config: 'guidelines' section of config.yaml
            default_user_id: User assumed when run() gets none
        """
        self.context_cache = context_cache
        self.classifier = classifier
        self.registry = registry
        self.generator = generator
        self.guideline_config = guideline_config or {}
        self.default_user_id = default_user_id
        self.logger = get_logger("orchestrator")

    async def run(self, query, user_id: Optional[str] = None) -> Dict:
        """
        Answer one user query.

        Args:
            query: Raw user text
            user_id: User whose context is used (defaults to default_user_id)

        Returns:
            Response dict with at least 'message', 'intent' and 'action'
        """
        if not isinstance(query, str) or not query.strip():
            return make_response(INVALID_QUERY_MESSAGE)

        user_id = user_id or self.default_user_id
        self.logger.debug(f"Query from {user_id}: {truncate_text(query, 80)}")

        try:
            context = await self.context_cache.get_context(user_id)
            if context is None:
                return make_response(NO_PROFILE_MESSAGE, requires_follow_up=True,
                                     required_fields=["profile"])

            classification = self.classifier.classify_with_confidence(query)
            intent = classification.intent
            self.logger.info(
                f"🎯 Intent classified: {intent.value} (confidence: {classification.confidence:.2f})"
            )

            if intent == Intent.EMERGENCY:
                return self.handle_emergency(context)

            handler = self.registry.get_handler(intent)
            if handler is not None:
                response = await handler.handle(query, context)
            else:
                response = await self.handle_general(query, context)

            response.setdefault("confidence", classification.confidence)
            return response

        except Exception as e:
            self.logger.error(f"Error processing query: {e}", exc_info=True)
            return make_response(
                "I apologize, but I encountered an issue processing your request. "
                f"Please try again. Error: {e}",
                error=str(e),
            )

    def handle_emergency(self, context) -> Dict:
        """Canned safety script; no records are written and no text is generated."""
        self.logger.warning(f"Emergency query from {context.user_id} at week {context.current_week}")
        return make_response(
            build_emergency_message(context.current_week),
            intent=Intent.EMERGENCY.value,
            action="emergency",
            emergency=True,
            confidence=1.0,
        )

    async def handle_general(self, query: str, context) -> Dict:
        """
        Answer an open question with guidelines and the local model.

        Generation failures never escape: the fallback is a summary of the
        guidelines found for the query.
        """
        week = context.current_week or 1
        guidelines = search_guidelines(query, week, self.guideline_config.get("search_limit", 3))
        guidelines_text = format_guidelines_for_prompt(guidelines)

        if self.generator is not None:
            conversation = build_conversation(query, guidelines_text, context)
            try:
                reply = await self.generator.generate(conversation)
            except Exception as e:
                self.logger.warning(f"Generation failed, using guideline fallback: {e}")
                reply = ""
            if reply:
                return make_response(reply, intent=Intent.GENERAL.value)

        if guidelines:
            message = (
                f"I understand you're asking about pregnancy at week {week}. "
                f"Here's some relevant information:\n\n{guidelines_text}"
            )
        else:
            message = (
                f"I understand you're asking about pregnancy at week {week}. How can I help you? "
                "I can assist with appointments, tracking health metrics, or providing pregnancy guidance."
            )
        return make_response(message, intent=Intent.GENERAL.value, fallback=True)

    # Pass-throughs for callers holding only the orchestrator

    async def get_user_context(self, user_id: Optional[str] = None):
        return await self.context_cache.get_context(user_id or self.default_user_id)

    async def update_cache(self, user_id: Optional[str] = None, category=None,
                           operation: str = "update"):
        return await self.context_cache.update_cache(user_id or self.default_user_id,
                                                     category, operation)

    async def invalidate_cache(self, user_id: Optional[str] = None):
        await self.context_cache.invalidate_cache(user_id)

    def get_cache_stats(self) -> Dict:
        return self.context_cache.get_cache_stats()
