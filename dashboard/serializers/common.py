import bleach

from dashboard.services.directory import scope_to_clinic


def clean_text(v):
    """Strip markup and surrounding whitespace from free-text input."""
    if v is None:
        return v
    return bleach.clean(str(v).strip(), tags=[], strip=True)


class ClinicScopedMixin:
    """Limit related-object choices to the requesting user's clinic.

    ``clinic_scoped_fields`` maps a related field to the path from its
    model to the clinic (see ``scope_to_clinic``).  The request comes
    from the serializer context.
    """
    clinic_scoped_fields: dict = {}

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        request = self.context.get('request')
        user = getattr(request, 'user', None)
        if user is None:
            return
        for name, path in self.clinic_scoped_fields.items():
            field = self.fields.get(name)
            if field is not None and getattr(field, 'queryset', None) is not None:
                field.queryset = scope_to_clinic(field.queryset, user, field=path)
