class LyricsError(Exception):
    pass


class LyricsUnavailable(LyricsError):
    pass


class MalformedLyrics(LyricsError, ValueError):
    pass
