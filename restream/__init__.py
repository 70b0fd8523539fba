"""restream - rewrite Python sources on their way into the interpreter.

A ModuleLoader on sys.meta_path routes matching modules through named
channels. Each channel reads the source, passes it through its hooks and
serves the result from memory, so the interpreter compiles the rewritten
code while __file__ keeps pointing at the real file.

Example:
    >>> from restream import ModuleLoader, TemplateTransform
    >>> loader = ModuleLoader()
    >>> loader.when().namespace("myapp").then(TemplateTransform({"DEBUG": False}))
"""

from restream.core.constants import RESTREAM_VERSION, ErrorCode, SplitPolicy
from restream.filters import BaseFilter, Conjunction, Disjunction, FilterError, RoutingFilter
from restream.helpers import restream
from restream.loader import ChannelSourceLoader, MetaPathHooks, ModuleLoader, PathFinderResolver
from restream.stream import (
    Channel,
    ChannelRegistry,
    NotAcceptableError,
    NotFoundError,
    NotReadableError,
    ReadStreamWrapper,
    StreamCreatingError,
    StreamError,
    StreamHost,
    StreamOpenError,
    get_registry,
    get_stream_host,
)
from restream.transforms import ReplaceTransform, TemplateTransform, Transform, TransformError

__version__ = RESTREAM_VERSION

__all__ = [
    "__version__",
    "ErrorCode",
    "SplitPolicy",
    # Filters
    "BaseFilter",
    "Conjunction",
    "Disjunction",
    "FilterError",
    "RoutingFilter",
    # Streams
    "Channel",
    "ChannelRegistry",
    "StreamHost",
    "ReadStreamWrapper",
    "get_registry",
    "get_stream_host",
    "StreamError",
    "StreamCreatingError",
    "StreamOpenError",
    "NotFoundError",
    "NotReadableError",
    "NotAcceptableError",
    # Loader
    "ModuleLoader",
    "ChannelSourceLoader",
    "MetaPathHooks",
    "PathFinderResolver",
    # Transforms
    "Transform",
    "TransformError",
    "TemplateTransform",
    "ReplaceTransform",
    # Helpers
    "restream",
]
