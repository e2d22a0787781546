from .adapters import (
    AdapterFactory,
    AdapterState,
    AsyncioTimerScheduler,
    DirectFileAdapter,
    EmbeddedStreamAdapter,
    PlayerAdapter,
)
from .controller import (
    COMPLETE_PERCENT,
    NEAR_COMPLETE_PERCENT,
    PlaybackController,
    PlaybackState,
    PlayerStatus,
)
from .errors import AdapterInitError, PlaybackCommandError, PlaybackError, SourceParseError
from .progress import ApiProgressStore, InMemoryProgressStore, ProgressStore
from .sources import DirectFile, EmbeddedStream, classify_url, parse_source
