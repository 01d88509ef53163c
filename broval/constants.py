"""Protocol-level constants: versions, message codes, phases and flags."""

from enum import IntEnum, IntFlag

PROTOCOL_VERSION = 0x07
"""Version of the communication protocol spoken with the peer."""

DATA_FORMAT_VERSION = 26
"""Version of the serialization data format."""

MSG_QUEUELEN_MAX = 1000
"""Number of messages queued before further messages are dropped."""

MESSAGE_TYPE_LIMIT = 0x13
"""One past the highest valid message code."""


class MessageType(IntEnum):
    """Message codes carried in a message header."""

    NONE = 0x00
    VERSION = 0x01
    SERIAL = 0x02
    CLOSE = 0x03
    CLOSE_ALL = 0x04
    ERROR = 0x05
    CONNECTTO = 0x06
    CONNECTED = 0x07
    REQUEST = 0x08
    LISTEN = 0x09
    LISTEN_STOP = 0x0A
    STATS = 0x0B
    CAPTURE_FILTER = 0x0C
    REQUEST_SYNC = 0x0D
    PHASE_DONE = 0x0E
    PING = 0x0F
    PONG = 0x10
    CAPS = 0x11
    COMPRESS = 0x12


class ConnPhase(IntEnum):
    """Lifecycle phase of one side of a connection."""

    SETUP = 0
    HANDSHAKE = 1
    SYNC = 2
    RUNNING = 3


class Capability(IntFlag):
    """Capabilities an endpoint may announce."""

    COMPRESS = 1
    DONTCACHE = 2
    BIT64 = 4
    NEW_CACHE_STRAT = 8
    BROCCOLI_PEER = 16


class ContentType(IntEnum):
    """Kind of payload held by a locally queued message."""

    NONE = 0
    RAW = 1
    EVENT = 2
    REQUEST = 3
    PACKET = 4


class IOMessage(IntEnum):
    """Messages between a master process and an I/O handler."""

    NONE = 0
    STOP = 1
    READ = 2
    WRITE = 3


class CallbackStyle(IntEnum):
    """How event handler callbacks receive their arguments."""

    EXPANDED = 0
    COMPACT = 1