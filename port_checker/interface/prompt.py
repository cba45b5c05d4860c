"""
Port Checker - Interactive Prompt
=================================

Blocking yes/no confirmation read from standard input.
"""

from typing import Callable

YES_ANSWERS = ("y", "yes")


def confirm_yes_no(prompt: str, input_func: Callable[[str], str] = input) -> bool:
    """
    Ask a yes/no question.

    Args:
        prompt: Question shown to the user
        input_func: Line reader, input() by default

    Returns:
        True only for an explicit yes; EOF (closed stdin) counts as no
    """
    try:
        answer = input_func(prompt)
    except EOFError:
        return False
    return answer.strip().lower() in YES_ANSWERS
