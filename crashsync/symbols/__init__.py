"""Symbol artifact caching and source control sync."""
