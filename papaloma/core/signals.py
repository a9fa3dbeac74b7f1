"""
Broadcast channels between the stores and their consumers.

state_changed:    sent by every store after its state changes.
                  kwargs: store, changes (dict of the fields that were set)
toast:            transient user-visible notification.
                  kwargs: level ('success' | 'error' | 'info'), message
session_expired:  the server rejected the session (401); auth state is gone.
                  kwargs: redirect_to
"""
from django.dispatch import Signal

state_changed = Signal()
toast = Signal()
session_expired = Signal()
