from skelcrew.core.context import RUNTIME_VERSION

__version__ = RUNTIME_VERSION
