import secrets
from typing import Awaitable, Callable

CODE_CHARSET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"

ADJECTIVES = [
    "Clever", "Swift", "Bright", "Quick", "Smart",
    "Happy", "Lucky", "Brave", "Cool", "Wise",
    "Eager", "Jolly", "Noble", "Proud", "Bold",
]
NOUNS = [
    "Eagle", "Tiger", "Lion", "Falcon", "Phoenix",
    "Dragon", "Wolf", "Bear", "Fox", "Owl",
    "Hawk", "Panda", "Dolphin", "Shark", "Raven",
]


class CodeSpaceExhausted(RuntimeError):
    pass


def generate_session_code(length: int = 6) -> str:
    return "".join(secrets.choice(CODE_CHARSET) for _ in range(length))


async def generate_unique_session_code(
    exists: Callable[[str], Awaitable[bool]],
    length: int = 6,
    max_attempts: int = 10,
) -> str:
    for _ in range(max_attempts):
        code = generate_session_code(length)
        if not await exists(code):
            return code
    raise CodeSpaceExhausted(f"Failed to generate a unique session code after {max_attempts} attempts")


def generate_anonymous_nickname() -> str:
    return f"{secrets.choice(ADJECTIVES)}{secrets.choice(NOUNS)}{secrets.randbelow(1000)}"


def normalize_session_code(code: str) -> str:
    return code.strip().upper()
