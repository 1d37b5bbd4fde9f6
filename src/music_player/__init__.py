"""Terminal music player driving mpv over its JSON IPC control channel."""
