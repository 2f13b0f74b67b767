"""
Option set validation and normalization.

An option set is one segment of an assignment: how many questions the
student answers in it, and the parameter bag the tile generator uses to
build each of those questions. Callers have historically sent the lock
position flag under several names; everything leaving this module carries
the canonical ``isLockPos``/``lockMode``/``lockCount`` trio and an explicit
value for every optional generator field.
"""
import copy

from django.conf import settings
from rest_framework.exceptions import ValidationError

LOCK_FLAG_ALIASES = (
    'lockMode',
    'isLockPos',
    'islockpos',
    'isLockPosition',
    'islockposition',
    'lockPositionMode',
    'lockpositionmode',
    'posLockMode',
    'poslockmode',
)

OPERATOR_MODES = ('random', 'specific')

SPECIFIC_OPERATOR_KEYS = ('plus', 'minus', 'multiply', 'divide')
OPERATOR_SYMBOLS = ('+', '-', '×', '÷')
FIXED_OPERATOR_KEYS = ('+', '-', '×', '÷', '+/-', '×/÷')
RANDOM_SETTING_KEYS = ('operators', 'equals', 'heavy', 'blank', 'zero')

COUNT_DEFAULTS = {
    'equalsCount': 1,
    'heavyNumberCount': 0,
    'BlankCount': 0,
    'zeroCount': 0,
}

MODE_FIELDS = ('equalsMode', 'heavyNumberMode', 'blankMode', 'zeroMode')

RANGE_FIELDS = (
    'equalsMin', 'equalsMax',
    'heavyNumberMin', 'heavyNumberMax',
    'blankMin', 'blankMax',
    'zeroMin', 'zeroMax',
    'operatorMin', 'operatorMax',
)


def _is_int(value):
    return isinstance(value, int) and not isinstance(value, bool)


def _is_missing(value):
    return value is None or value == ''


def _fill_counts(raw, keys):
    raw = raw if isinstance(raw, dict) else {}
    filled = {key: raw.get(key) if raw.get(key) is not None else 0 for key in keys}
    extras = {key: value for key, value in raw.items() if key not in filled}
    return {**extras, **filled}


def resolve_lock_mode(options):
    """Read the lock position flag from whichever alias the caller used."""
    raw = None
    for alias in LOCK_FLAG_ALIASES:
        if options.get(alias) is not None:
            raw = options[alias]
            break
    if isinstance(raw, str):
        return raw.strip().lower() == 'true'
    return bool(raw)


def lock_mode_enabled(options):
    return bool((options or {}).get('isLockPos', False))


def compute_lock_count(total_count, lock_mode):
    if not lock_mode:
        return 0
    free_tiles = settings.ASSIGNMENT_SETTINGS['LOCK_FREE_TILE_COUNT']
    return max(0, total_count - free_tiles)


def normalize_options(options, set_number):
    """Return a copy of ``options`` with every generator field given a value."""
    for field in ('totalCount', 'operatorMode', 'operatorCount'):
        if _is_missing(options.get(field)):
            raise ValidationError(
                f"Option set {set_number} options are incomplete: '{field}' is required."
            )

    total_count = options['totalCount']
    if not _is_int(total_count) or total_count < 1:
        raise ValidationError(f"Option set {set_number} totalCount must be a positive integer.")
    if options['operatorMode'] not in OPERATOR_MODES:
        raise ValidationError(
            f"Option set {set_number} operatorMode must be one of: {', '.join(OPERATOR_MODES)}."
        )
    if not _is_int(options['operatorCount']) or options['operatorCount'] < 0:
        raise ValidationError(f"Option set {set_number} operatorCount must be a non-negative integer.")

    normalized = copy.deepcopy(options)

    for field, default in COUNT_DEFAULTS.items():
        if options.get(field) is None:
            normalized[field] = default

    normalized['specificOperators'] = _fill_counts(options.get('specificOperators'), SPECIFIC_OPERATOR_KEYS)
    normalized['operatorCounts'] = _fill_counts(options.get('operatorCounts'), OPERATOR_SYMBOLS)

    fixed = options.get('operatorFixed') if isinstance(options.get('operatorFixed'), dict) else {}
    normalized['operatorFixed'] = {key: fixed.get(key) for key in FIXED_OPERATOR_KEYS}

    for field in MODE_FIELDS:
        normalized[field] = options.get(field) or 'random'

    for field in RANGE_FIELDS:
        normalized[field] = options.get(field)

    random_settings = options.get('randomSettings')
    if isinstance(random_settings, dict):
        normalized['randomSettings'] = {
            key: bool(random_settings.get(key, True)) for key in RANDOM_SETTING_KEYS
        }
    else:
        normalized['randomSettings'] = {key: False for key in RANDOM_SETTING_KEYS}

    # Canonical lock fields always win over whatever aliases came in.
    lock_mode = resolve_lock_mode(options)
    normalized['isLockPos'] = lock_mode
    normalized['lockMode'] = lock_mode
    normalized['lockCount'] = compute_lock_count(total_count, lock_mode)
    return normalized


def normalize_option_sets(option_sets, total_questions):
    """
    Validate the option sets attached to a new assignment.

    The segment sizes must add up to ``total_questions``. Returns a list of
    ``{'options', 'num_questions', 'set_label'}`` dicts ready to persist, in
    the order given. Raises ``ValidationError`` before anything is written.
    """
    if not option_sets:
        return []
    if not isinstance(option_sets, (list, tuple)):
        raise ValidationError("option_sets must be a list.")

    declared = 0
    for option_set in option_sets:
        num_questions = option_set.get('num_questions') if isinstance(option_set, dict) else None
        if _is_int(num_questions):
            declared += num_questions
    if declared != total_questions:
        raise ValidationError(
            f"Questions across option sets ({declared}) do not match total_questions ({total_questions})."
        )

    validated = []
    for index, option_set in enumerate(option_sets):
        set_number = index + 1
        if not isinstance(option_set, dict):
            raise ValidationError(f"Option set {set_number} must be an object.")

        options = option_set.get('options')
        num_questions = option_set.get('num_questions')
        if not isinstance(options, dict) or not options or num_questions is None:
            raise ValidationError(f"Option set {set_number} is missing options or num_questions.")
        if not _is_int(num_questions) or num_questions < 1:
            raise ValidationError(f"Option set {set_number} must contain at least 1 question.")

        validated.append({
            'options': normalize_options(options, set_number),
            'num_questions': num_questions,
            'set_label': (option_set.get('set_label') or '').strip() or f"Set {set_number}",
        })
    return validated
