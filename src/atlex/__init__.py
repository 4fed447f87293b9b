"""AT Protocol Lexicon toolkit.

atlex compiles Lexicon schema documents into runtime validators and typed
value classes, resolves cross-Lexicon references through a registry, and
ships strict codecs for the protocol's identifiers (DIDs, handles, NSIDs,
``at://`` URIs, TIDs and record keys).

Key components:

- ``compile_lexicon``: Compile a Lexicon JSON document into a
  ``LexiconBundle`` of validators, type descriptors and value classes.
- ``LexiconRegistry``: Index of compiled Lexicons keyed by NSID, loading
  referenced documents lazily from configured sources.
- ``default_registry``: Process-wide registry used by generated modules.
- ``generate_module`` / ``write_module``: Render a bundle as Python source.
- ``TID`` / ``AtUri``: Decoded identifier values.

Example:
    ::

        >>> import atlex
        >>> bundle = atlex.compile_lexicon({
        ...     "lexicon": 1,
        ...     "id": "app.example.note",
        ...     "defs": {"main": {"type": "object", "required": ["text"],
        ...              "properties": {"text": {"type": "string"}}}},
        ... })
        >>> bundle.validate("main", {}).error.path_str
        '$.text'
"""

from ._config import AtlexConfig, load_config
from ._exceptions import (
    AtlexError,
    IdentifierFormatError,
    LexiconCompileError,
    LexiconReferenceError,
    LexiconValidationError,
)
from ._logging import LoggerProtocol, configure_logging, get_logger, log_operation
from .identifiers import TID, AtUri
from .lexicon import (
    BundledSource,
    CompiledSchema,
    DirectorySource,
    LexiconBundle,
    LexiconDocument,
    LexiconObject,
    LexiconRegistry,
    ValidationResult,
    compile_lexicon,
    default_registry,
    generate_module,
    reset_default_registry,
    write_module,
)

__version__ = "0.3.0"

__all__ = [
    "__version__",
    # Compilation
    "compile_lexicon",
    "LexiconDocument",
    "LexiconBundle",
    "CompiledSchema",
    "LexiconObject",
    "ValidationResult",
    # Registry
    "LexiconRegistry",
    "DirectorySource",
    "BundledSource",
    "default_registry",
    "reset_default_registry",
    # Code generation
    "generate_module",
    "write_module",
    # Identifiers
    "TID",
    "AtUri",
    # Configuration
    "AtlexConfig",
    "load_config",
    # Logging
    "LoggerProtocol",
    "configure_logging",
    "get_logger",
    "log_operation",
    # Exceptions
    "AtlexError",
    "IdentifierFormatError",
    "LexiconCompileError",
    "LexiconReferenceError",
    "LexiconValidationError",
]
