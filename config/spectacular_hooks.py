"""
Custom hooks for drf-spectacular.
"""


def keep_bearer_security_scheme(result, generator, request, public):
    """Replace auto-detected security schemes with the JWT bearer scheme."""
    components = result.setdefault('components', {})
    components['securitySchemes'] = {
        'BearerAuth': {
            'type': 'http',
            'scheme': 'bearer',
            'bearerFormat': 'JWT',
            'description': 'JWT from /api/auth/login/. Format: `Bearer <token>`'
        }
    }
    return result
