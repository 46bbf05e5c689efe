"""Local substitutes used when the upstream generator fails or misbehaves."""

from __future__ import annotations

import random

from complimentary.models import (
    FALLBACK_TAG,
    Artifact,
    ArtifactType,
    GenerationIntent,
    Provenance,
    Style,
)
from complimentary.normalizer import reconcile_tags

FALLBACK_SCORES = {
    ArtifactType.COMPLIMENT: 3,
    ArtifactType.HAIKU: 4,
}

CONTEXT_TAGS = ("work", "team")

FALLBACK_POOL: dict[tuple[ArtifactType, Style], tuple[str, ...]] = {
    (ArtifactType.HAIKU, Style.CLASSIC): (
        "Gentle morning light\nShines through your kind actions now\nWarming every heart",
        "Steady as a rock\nYour support never falters\nStrength in quiet ways",
        "Like a gentle breeze\nYour presence brings fresh insight\nTo every moment",
    ),
    (ArtifactType.HAIKU, Style.GOOFY): (
        "Sparkles in your eyes\nJoy bubbles up like soda\nPop! There goes my heart ✨",
        "Giggle like a stream\nFlowing through the workday bright\nSplash! Fun everywhere",
        "Bounce like a bunny\nEnergy that never stops\nHop! Skip! Jump! Yay! \U0001F430",
    ),
    (ArtifactType.HAIKU, Style.POETIC): (
        "Petals fall like words\nEach syllable a blessing\nPoetry in motion",
        "Moonlight on still lakes\nReflects the calm you carry\nRipples of kindness",
        "Mountains touch the sky\nYour spirit climbs higher still\nEagles soar with you",
    ),
    (ArtifactType.HAIKU, Style.PROFESSIONAL): (
        "Precision in thought\nLeads to excellence achieved\nMastery displayed",
        "Collaboration\nLike rivers joining oceans\nStrength in unity",
        "Innovation sparks\nFrom your inventive mind\nThe future takes shape",
    ),
    (ArtifactType.COMPLIMENT, Style.CLASSIC): (
        "Your dedication to helping others never goes unnoticed. "
        "You have a way of making complex things feel simple.",
        "Thanks for being the kind of person who always shows up when it matters most.",
        "Your positive attitude is contagious and makes every interaction better.",
    ),
    (ArtifactType.COMPLIMENT, Style.GOOFY): (
        "You're like a human ray of sunshine with extra sparkles! ✨",
        "If there was a championship for being awesome, you'd win it every time! \U0001F3C6",
        "Your energy is so infectious, I'm pretty sure you could cheer up a grumpy cat! \U0001F638",
    ),
    (ArtifactType.COMPLIMENT, Style.POETIC): (
        "Like morning light breaking through clouds, your presence brings clarity to confusion.",
        "You weave words into bridges that connect hearts and minds across distances.",
        "Your kindness flows like a gentle stream, nourishing the soil of every relationship.",
    ),
    (ArtifactType.COMPLIMENT, Style.PROFESSIONAL): (
        "Your strategic thinking and attention to detail consistently deliver exceptional results.",
        "The way you approach challenges with both creativity and precision sets a high standard "
        "for excellence.",
        "Your professional integrity and collaborative spirit create an environment where everyone "
        "can thrive.",
    ),
}

UNIVERSAL_FALLBACK = {
    ArtifactType.COMPLIMENT: "You make the people around you feel seen and appreciated.",
    ArtifactType.HAIKU: "Kindness in your step\nQuiet light for those nearby\nThank you for being",
}


def _context_tags(intent: GenerationIntent) -> list[str]:
    hints = [hint.lower() for hint in intent.context_hints]
    return [tag for tag in CONTEXT_TAGS if any(tag in hint for hint in hints)]


def supply_fallback(intent: GenerationIntent, rng: random.Random | None = None) -> Artifact:
    """Pick a pre-authored artifact matching the intent's type and style.

    Never raises and never touches the network. Choice among candidates is
    uniform; pass a seeded ``rng`` for reproducible picks.
    """
    rng = rng or random.Random()
    candidates = FALLBACK_POOL.get((intent.artifact_type, intent.style), ())
    if candidates:
        text = rng.choice(candidates)
    else:
        text = UNIVERSAL_FALLBACK[intent.artifact_type]

    base_tags = [intent.style.value, *_context_tags(intent)]
    return Artifact(
        artifact_type=intent.artifact_type,
        style=intent.style,
        text=text,
        sparkle_score=FALLBACK_SCORES[intent.artifact_type],
        tags=reconcile_tags(base_tags, intent.artifact_type, intent.style, extra=(FALLBACK_TAG,)),
        provenance=Provenance.FALLBACK,
    )
