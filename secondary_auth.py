"""
secondary_auth.py

Secret-word challenge shown after login and, occasionally, after navigation.
Each password input asks for one letter of the shared secret; the letter's
1-based position is the numeral at the end of the input's name.
"""

import logging
import re
from typing import List, Sequence

logger = logging.getLogger(__name__)

SECRET_INPUT_SELECTOR = "form input[type=password]"
SUBMIT_BUTTON_NAME = "Submit"

_POSITION_SUFFIX = re.compile(r"(\d+)$")


def letter_position(field_name: str) -> int:
    """1-based secret position encoded in a field name such as 'secretLetter3'"""
    match = _POSITION_SUFFIX.search(field_name or "")
    if not match:
        raise ValueError(f"No letter position in field name: {field_name!r}")
    return int(match.group(1))


def secret_letters(field_names: Sequence[str], secret: str) -> List[str]:
    """Letters of the secret requested by each field, in field order"""
    letters = []
    for name in field_names:
        position = letter_position(name)
        if not 1 <= position <= len(secret):
            raise ValueError(f"Field {name!r} asks for letter {position} of a {len(secret)}-letter secret")
        letters.append(secret[position - 1])
    return letters


def challenge_present(location: str, marker: str) -> bool:
    return marker in (location or "")


async def handle_secondary_auth(driver, secret: str, marker: str) -> bool:
    """
    Answer the secret-word challenge if the current page is showing it.

    Returns True if the challenge was answered, False if none was present.
    """
    if not challenge_present(driver.current_location(), marker):
        return False

    logger.info("Secondary authentication required, supplying secret letters")
    names = await driver.attribute_values(SECRET_INPUT_SELECTOR, "name")
    for index, letter in enumerate(secret_letters(names, secret)):
        await driver.fill_nth(SECRET_INPUT_SELECTOR, index, letter)
    location = await driver.submit_role("button", SUBMIT_BUTTON_NAME)
    if challenge_present(location, marker):
        logger.warning("Secondary authentication was not accepted")
    else:
        logger.info("Secondary authentication submitted")
    return True
