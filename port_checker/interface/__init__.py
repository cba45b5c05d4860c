from .prompt import confirm_yes_no

__all__ = ['confirm_yes_no']
