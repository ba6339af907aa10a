"""Pseudonym generation for anonymous commenters."""

import random

_rng = random.Random()

ADJECTIVES = [
    "Anonymous", "Mysterious", "Secret", "Hidden", "Unknown",
    "Quiet", "Silent", "Stealthy", "Covert", "Private",
    "Invisible", "Unseen", "Shadow", "Ghost", "Phantom",
    "Whisper", "Echo", "Silhouette", "Veiled", "Masked",
]  # fmt: skip

NOUNS = [
    "User", "Visitor", "Guest", "Stranger", "Observer",
    "Spectator", "Witness", "Viewer", "Reader", "Listener",
    "Traveler", "Explorer", "Wanderer", "Nomad", "Pilgrim",
    "Seeker", "Adventurer", "Voyager", "Rover", "Rambler",
]  # fmt: skip


def generate_username(rng: random.Random | None = None) -> str:
    """Generate a pseudonym such as ``SilentObserver417``.

    Args:
        rng: Random source (module-level generator when omitted)

    Returns:
        Adjective, noun and a number below 1000, concatenated
    """
    rng = rng or _rng
    return f"{rng.choice(ADJECTIVES)}{rng.choice(NOUNS)}{rng.randrange(1000)}"
