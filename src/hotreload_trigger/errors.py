"""Exception types raised by hotreload_trigger."""


class HotReloadError(Exception):
    """Base class for hot reload errors."""


class AlreadyStarted(HotReloadError):
    """start() was called on a coordinator that is already running."""


class WatchSetupFailed(HotReloadError):
    """The native filesystem event subscription could not be established.

    Non-fatal: the coordinator keeps polling the sentinel file.
    """


class SentinelUnwritable(HotReloadError):
    """The sentinel file did not exist and could not be created.

    Non-fatal: trigger_now() keeps working without the file.
    """
