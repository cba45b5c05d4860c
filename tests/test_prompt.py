import pytest

from port_checker.interface.prompt import confirm_yes_no


@pytest.mark.parametrize("answer", ["y", "Y", "yes", " YES \n"])
def test_yes(answer):
    assert confirm_yes_no("kill? ", input_func=lambda prompt: answer)


@pytest.mark.parametrize("answer", ["n", "", "nope", "maybe"])
def test_anything_else_is_no(answer):
    assert not confirm_yes_no("kill? ", input_func=lambda prompt: answer)


def test_closed_stdin_is_no():
    def eof(prompt):
        raise EOFError

    assert not confirm_yes_no("kill? ", input_func=eof)


def test_prompt_is_shown():
    seen = []
    confirm_yes_no("Do you want to kill process 7? (y/n): ", input_func=lambda p: seen.append(p) or "n")
    assert seen == ["Do you want to kill process 7? (y/n): "]
