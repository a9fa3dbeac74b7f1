from rest_framework import serializers


class PaginationSerializer(serializers.Serializer):
    page = serializers.IntegerField(min_value=0)
    limit = serializers.IntegerField(min_value=0)
    total = serializers.IntegerField(min_value=0)
    totalPages = serializers.IntegerField(min_value=0)


class EnvelopeSerializer(serializers.Serializer):
    """Uniform response wrapper: {success, message, data?, pagination?}"""
    success = serializers.BooleanField()
    message = serializers.CharField(required=False, allow_blank=True, trim_whitespace=False, default='')
    data = serializers.JSONField(required=False, allow_null=True, default=None)
    pagination = PaginationSerializer(required=False, allow_null=True, default=None)


def first_error_message(errors, default=None):
    """
    Pull the first human-readable message out of DRF's nested error structure.
    Field messages are returned as-is; serializers carry their own wording.
    """
    if isinstance(errors, dict):
        for value in errors.values():
            message = first_error_message(value)
            if message:
                return message
    elif isinstance(errors, (list, tuple)):
        for value in errors:
            message = first_error_message(value)
            if message:
                return message
    elif errors:
        return str(errors)
    return default
