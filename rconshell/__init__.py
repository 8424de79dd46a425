"""rconshell: an interactive RCON shell completing commands from server help."""
# pylint: disable=wildcard-import,undefined-variable
from .tokenizer import *        # noqa
from .grammar import *          # noqa
from .registry import *         # noqa
from .builder import *          # noqa
from .completion import *       # noqa
from .help_text import *        # noqa
from .rcon import *             # noqa
from .accessories import get_version as __get_version

__all__ = (
    tokenizer.__all__ +
    grammar.__all__ +
    registry.__all__ +
    builder.__all__ +
    completion.__all__ +
    help_text.__all__ +
    rcon.__all__
)  # noqa

__license__ = 'ISC'
__version__ = __get_version()
