"""Helpers for working with mirrored server entities (plain dicts)"""


def find_by_id(entries, entry_id):
    """Return the first entry whose 'id' matches, or None"""
    for entry in entries:
        if entry.get('id') == entry_id:
            return entry
    return None


def response_list(response, key=None):
    """
    Extract a list payload from an envelope. List endpoints put the list in
    `data` directly; aggregate endpoints nest it under a key.
    """
    data = response.get('data')
    if key is not None:
        data = data.get(key) if isinstance(data, dict) else None
    return data if isinstance(data, list) else []


def response_value(response, key, default=None):
    data = response.get('data')
    if isinstance(data, dict) and data.get(key) is not None:
        return data[key]
    return default
