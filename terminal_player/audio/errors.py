class AudioError(RuntimeError):
    pass


class UnsupportedFormat(AudioError):
    pass


class AudioDeviceError(AudioError):
    pass
