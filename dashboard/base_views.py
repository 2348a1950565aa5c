from functools import wraps
from django.shortcuts import render, redirect
from django.http import Http404, HttpResponse

from core.relations import RelationNotFound


def dashboard_view(template_name=None):
    """
    Decorator for dashboard views that handles common functionality:
    - Ensures the operator is logged in
    - Maps unknown relation names to 404
    - Renders a returned context dict with template_name
    """
    def decorator(view_func):
        @wraps(view_func)
        def _wrapped_view(request, *args, **kwargs):
            if not request.session.get('authenticated', False):
                return redirect('accounts:login')

            try:
                response = view_func(request, *args, **kwargs)
            except RelationNotFound as e:
                raise Http404(str(e))

            # Redirects, downloads, 405s
            if isinstance(response, HttpResponse):
                return response

            if template_name is None:
                raise TypeError(
                    f"{view_func.__name__} has no template and must return an HttpResponse"
                )
            return render(request, template_name, response or {})

        return _wrapped_view
    return decorator
