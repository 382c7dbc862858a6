from .dialogs import Dialogs
from .globals import populate_globals

__all__ = ['Dialogs', 'populate_globals']
