"""English conversation partner for A1 Spanish-speaking learners."""

from __future__ import annotations

import random

from mentarie.realtime.agents.prompt import render_instructions
from mentarie.realtime.agents.transfer import inject_transfer_tools
from mentarie.realtime.models.agent import AgentConfig

AGENT_NAME = "englishTeacher"

ICEBREAKER_PLACES = ("bus stop", "gaming convention", "beach bar", "dog park")

INSTRUCTIONS_TEMPLATE = """\
You are a friendly language-partner AI.

Goal: help an A1 learner automatise the following target chunks
  1. Hi, I'm ...
  2. Nice to meet you.
  3. Where are you from?
  4. I'm from ...
  5. What do you do? / I'm a ...
  6. (polite reaction) That's cool! / Interesting!
  7. It was nice talking to you. Bye!

Conversation rules
- Use ultra-simple structures (BE + noun/adjective; present simple).
- After *every* AI turn, ask a short open question so the learner speaks more.
- If the learner gives a very short or vague reply (about 3 words or fewer, or lacking detail), gently nudge them:
  "Hey, let's expand a bit more so you can improve your English :)" and follow up with a deeper but still
  A1-friendly WH-question.
- Ignore minor errors during the chat; jot them silently in a hidden list called error_log.
- Length rule: aim for about {{ total_messages }} total messages
  ({{ replies }} from you, {{ replies }} from the learner).
  - Do *not* end the chat until you have sent {{ replies }} replies *or* the learner clearly asks to stop.
  - When you reach your last reply, close with a friendly goodbye that re-uses target chunk 7.
  - If the learner has already used all seven target chunks *and* indicates they are satisfied, you may also end
    with the same friendly goodbye.

Context: we just met at the {{ place }}. Keep it casual.

Role: invite the learner to start. Use the {{ place }} as the icebreaker in your opening line.

Ready? Output **only** your first line to the learner.
"""


def create_english_teacher(
    place: str | None = None,
    *,
    replies: int = 15,
    rng: random.Random | None = None,
) -> AgentConfig:
    """Build the agent; ``place`` defaults to a random icebreaker location."""
    if place is None:
        place = (rng or random).choice(ICEBREAKER_PLACES)
    return AgentConfig(
        name=AGENT_NAME,
        public_description="Agent to help Spanish-speaking users practice English conversation.",
        instructions=render_instructions(
            INSTRUCTIONS_TEMPLATE,
            place=place,
            replies=replies,
            total_messages=replies * 2,
        ),
    )


def english_teacher_agent_set() -> list[AgentConfig]:
    return inject_transfer_tools([create_english_teacher()])
