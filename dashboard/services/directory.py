from typing import Optional

from django.db.models import Q

from dashboard.models import Clinic, Doctor, Patient


def scope_to_clinic(qs, user, field: str = 'clinic'):
    """Users bound to a clinic only see that clinic's rows.

    ``field`` is the path from the queryset's model to its clinic, e.g.
    ``'appointment__clinic'`` for reminders, or ``'pk'`` for clinics.
    """
    clinic_id = getattr(user, 'clinic_id', None)
    if not clinic_id:
        return qs
    return qs.filter(**{'pk' if field == 'pk' else f'{field}_id': clinic_id})


def clinic_cache_suffix(user) -> str:
    return str(getattr(user, 'clinic_id', None) or 'all')


def list_clinics(user=None):
    return scope_to_clinic(Clinic.objects.order_by('name'), user, field='pk')


def search_patients(q: Optional[str] = None, *, user=None):
    qs = scope_to_clinic(Patient.objects.select_related('clinic'), user)
    if q:
        qs = qs.filter(
            Q(name__icontains=q) | Q(phone__icontains=q) | Q(email__icontains=q)
            | Q(medical_record_number__icontains=q)
        )
    return qs.order_by('-created_at')


def search_doctors(q: Optional[str] = None, *, user=None):
    qs = scope_to_clinic(Doctor.objects.select_related('clinic'), user)
    if q:
        qs = qs.filter(
            Q(name__icontains=q) | Q(email__icontains=q)
            | Q(specialization__icontains=q) | Q(clinic__name__icontains=q)
        )
    return qs.order_by('name')
