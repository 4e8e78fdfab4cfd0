"""Request controllers mapping store outcomes onto response envelopes."""
