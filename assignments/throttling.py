from rest_framework.throttling import UserRateThrottle, AnonRateThrottle


class AnswerRateThrottle(UserRateThrottle):
    """Rate limit for answer submissions."""
    scope = 'answer'


class AuthRateThrottle(AnonRateThrottle):
    """Rate limit for login and registration to slow down brute force."""
    scope = 'auth'
