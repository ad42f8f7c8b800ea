"""One-class-per-file implementations behind ``chatstream.base.models``."""
