# dashboard/context_processors.py
from django.urls import reverse

from core.helpers import humanize
from core.relations import managed_relations


def dashboard_menu(request):
    """Sidebar table chooser for every dashboard page."""
    if not request.session.get('authenticated'):
        return {}

    match = getattr(request, 'resolver_match', None)
    active_key = None
    if match is not None:
        active_key = match.kwargs.get('relation')
        if active_key is None and (match.url_name or '').startswith('account_'):
            active_key = 'users'

    menu_items = [
        {
            'name': humanize(relation.name),
            'url': reverse('dashboard:table', kwargs={'relation': relation.name}),
            'icon': 'users' if relation.is_identity_store else 'table',
            'key': relation.name,
        }
        for relation in managed_relations()
    ]

    return {
        'menu_items': menu_items,
        'active_menu': active_key,
        'username': request.session.get('username'),
    }


def dashboard_toast(request):
    """Pop the one-shot success/error notification flashed by the previous request."""
    if not hasattr(request, 'session'):
        return {}

    success = request.session.pop('success_message', None)
    error = request.session.pop('error_message', None)
    if error:
        return {'toast': {'type': 'error', 'message': error}}
    if success:
        return {'toast': {'type': 'success', 'message': success}}
    return {}
