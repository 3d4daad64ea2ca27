from .flag_entry import FlagEntry, FlagMetadata, format_timestamp

__all__ = ['FlagEntry', 'FlagMetadata', 'format_timestamp']
