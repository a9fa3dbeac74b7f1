"""
Base classes for the client-side state containers.

A store owns a slice of server-mirrored state, exposes async actions that call
the gateway, and broadcasts every change through the `state_changed` signal so
any number of consumers can re-render from it.
"""
import copy
import logging
from asgiref.sync import sync_to_async
from django.conf import settings
from rest_framework import serializers

from .exceptions import GatewayError, DEFAULT_ERROR_MESSAGE
from .serializers import first_error_message
from .signals import state_changed, toast

logger = logging.getLogger(__name__)


class StateContainer:
    """Observable state: fields declared in `initial_state`, changed through `set()`"""
    initial_state = {}

    def __init__(self):
        for field, value in copy.deepcopy(self.initial_state).items():
            setattr(self, field, value)

    def set(self, **changes):
        for field, value in changes.items():
            if field not in self.initial_state:
                raise AttributeError(f"{self.__class__.__name__} has no state field '{field}'")
            setattr(self, field, value)
        state_changed.send(sender=self.__class__, store=self, changes=changes)

    def get_state(self):
        return {field: getattr(self, field) for field in self.initial_state}

    def notify(self, level, message):
        """Emit a transient (toast) notification"""
        toast.send(sender=self.__class__, level=level, message=message)


class ApiStore(StateContainer):
    """
    State container backed by the gateway.

    `invalidates` maps an entity name to the fetch methods that must run after
    a successful write to it (write-then-refetch). The slice is never patched
    locally; the refetch result replaces it.
    """
    invalidates = {}

    def __init__(self, api, discard_stale=None):
        super().__init__()
        self.api = api
        if discard_stale is None:
            discard_stale = getattr(settings, 'PAPALOMA_DISCARD_STALE_RESPONSES', False)
        self.discard_stale = discard_stale
        self._generations = {}

    async def _call(self, call):
        """Run a blocking gateway call off the event loop"""
        return await sync_to_async(call, thread_sensitive=False)()

    def _begin(self, slice_name):
        generation = self._generations.get(slice_name, 0) + 1
        self._generations[slice_name] = generation
        return generation

    def _is_stale(self, slice_name, generation):
        return self.discard_stale and self._generations.get(slice_name) != generation

    def _fail(self, message, loading=None, quiet=False):
        changes = {'error': message}
        if loading:
            changes[loading] = False
        self.set(**changes)
        if not quiet:
            self.notify('error', message)

    async def _fetch(self, slice_name, call, apply, loading=None, quiet=False):
        """
        Replace a slice with the server's answer.

        Args:
            slice_name: key for the stale-response guard
            call: zero-argument gateway call
            apply: maps the envelope to the state changes to make
            loading: name of the slice's loading flag
            quiet: record the error without a toast (background polling)

        On failure the previous slice is kept, `error` is set and an error
        toast is emitted. Returns True when the response was applied.
        """
        generation = self._begin(slice_name)
        changes = {'error': None}
        if loading:
            changes[loading] = True
        self.set(**changes)

        try:
            try:
                response = await self._call(call)
            except GatewayError as e:
                if self._is_stale(slice_name, generation):
                    logger.debug(f"{self.__class__.__name__}: dropped stale failure for {slice_name}")
                    return False
                logger.info(f"{self.__class__.__name__}: fetching {slice_name} failed: {e.message}")
                self._fail(e.message, loading, quiet)
                return False

            if self._is_stale(slice_name, generation):
                logger.debug(f"{self.__class__.__name__}: dropped stale response for {slice_name}")
                return False

            changes = apply(response)
            if loading:
                changes[loading] = False
            self.set(**changes)
            return True
        finally:
            # A newer request in flight owns the flag
            if loading and getattr(self, loading) and not self._is_stale(slice_name, generation):
                self.set(**{loading: False})

    async def _mutate(self, entity, call, success_message, serializer=None, apply=None, loading='is_loading'):
        """
        Write to the server, then refetch what the write invalidated.

        Args:
            entity: key into `invalidates`; None when nothing is mirrored
            call: zero-argument gateway call performing the write
            success_message: toast shown after success
            serializer: unbound DRF serializer validating the payload first;
                an invalid payload is never sent
            apply: optional mapping from the envelope to local state changes
            loading: loading flag raised for the duration

        Returns True on success, False on failure (slices left untouched).
        The loading flag is lowered on every exit path.
        """
        if loading:
            self.set(**{loading: True, 'error': None})
        else:
            self.set(error=None)

        try:
            try:
                if serializer is not None:
                    serializer.is_valid(raise_exception=True)
                response = await self._call(call)
            except serializers.ValidationError as e:
                message = first_error_message(e.detail, DEFAULT_ERROR_MESSAGE)
                logger.info(f"{self.__class__.__name__}: rejected invalid {entity or 'payload'}: {message}")
                self._fail(message, loading)
                return False
            except GatewayError as e:
                logger.info(f"{self.__class__.__name__}: writing {entity or 'payload'} failed: {e.message}")
                self._fail(e.message, loading)
                return False

            changes = apply(response) if apply else {}
            await self.refetch(entity)
            if loading:
                changes[loading] = False
            if changes:
                self.set(**changes)
        finally:
            if loading and getattr(self, loading):
                self.set(**{loading: False})

        self.notify('success', success_message)
        return True

    async def refetch(self, entity):
        """Run every fetch registered for the entity, in order"""
        for method_name in self.invalidates.get(entity, ()):
            await getattr(self, method_name)()
