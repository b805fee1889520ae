from urllib.parse import urlsplit


def is_absolute_url(value: str) -> bool:
    """True for ``http``/``https`` URLs that name a host."""
    try:
        parts = urlsplit(value)
    except ValueError:
        return False
    return parts.scheme in ("http", "https") and bool(parts.netloc)


def is_valid_activitypub_actor(actor_id: str) -> bool:
    """Check that ``actor_id`` looks like an ActivityPub actor URI.

    Actors must be served over HTTPS from a real host and live at a path,
    e.g. ``https://mastodon.social/users/alice``.
    """
    try:
        parts = urlsplit(actor_id)
        hostname = parts.hostname
    except (TypeError, ValueError):
        return False

    if parts.scheme != "https":
        return False

    if not hostname or len(hostname) < 3:
        return False

    if not parts.path or parts.path == "/":
        return False

    return True
