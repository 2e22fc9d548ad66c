"""
Request body validation.

Every validator collects all field problems before failing, so a client gets
the complete list in one 400 response:

    {"errors": [{"value": ..., "msg": "...", "param": "scores.team1.total", "location": "body"}]}
"""
from datetime import datetime, timezone
from typing import Any, List, Optional, Tuple

from .errors import ValidationError
from .models import PlayerPosition, TournamentStatus, TournamentFormat


class FieldErrors:
    def __init__(self, location: str = 'body'):
        self.location = location
        self.errors: List[dict] = []

    def add(self, param: str, msg: str, value: Any = None):
        self.errors.append({
            'value': value,
            'msg': msg,
            'param': param,
            'location': self.location,
        })

    def require(self, data: dict, param: str, msg: str) -> Any:
        value = data.get(param)
        if _is_empty(value):
            self.add(param, msg, value)
            return None
        return value

    def require_text(self, data: dict, param: str, msg: str) -> Optional[str]:
        value = self.require(data, param, msg)
        if value is None:
            return None
        if not isinstance(value, str):
            self.add(param, f'{param} must be a string', value)
            return None
        return value.strip()

    def raise_if_any(self):
        if self.errors:
            raise ValidationError(self.errors)


def _is_empty(value) -> bool:
    if value is None:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    if isinstance(value, (list, dict)) and not value:
        return True
    return False


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_count(value) -> bool:
    return _is_int(value) and value >= 0


def parse_datetime(value) -> Optional[datetime]:
    """Parse an ISO-8601 value into a naive UTC datetime, or None."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip().replace('Z', '+00:00'))
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def parse_id(value) -> Optional[int]:
    if _is_int(value):
        return value if value > 0 else None
    if isinstance(value, str) and value.strip().isdigit():
        parsed = int(value.strip())
        return parsed if parsed > 0 else None
    return None


def _check_id(errors: FieldErrors, data: dict, param: str, msg: str) -> Optional[int]:
    raw = errors.require(data, param, msg)
    if raw is None:
        return None
    parsed = parse_id(raw)
    if parsed is None:
        errors.add(param, f'{param} must be a valid id', raw)
    return parsed


def _check_datetime(errors: FieldErrors, data: dict, param: str, msg: str) -> Optional[datetime]:
    raw = errors.require(data, param, msg)
    if raw is None:
        return None
    parsed = parse_datetime(raw)
    if parsed is None:
        errors.add(param, f'{param} must be an ISO-8601 timestamp', raw)
    return parsed


def _body(data) -> dict:
    return data if isinstance(data, dict) else {}


# ==================== Games ====================

def validate_game_create(data) -> dict:
    data = _body(data)
    errors = FieldErrors()

    tournament_id = _check_id(errors, data, 'tournament', 'Tournament is required')
    team1_id = _check_id(errors, data, 'team1', 'Team 1 is required')
    team2_id = _check_id(errors, data, 'team2', 'Team 2 is required')
    scheduled_time = _check_datetime(errors, data, 'scheduledTime', 'Scheduled time is required')

    if team1_id is not None and team1_id == team2_id:
        errors.add('team2', 'Team 2 must be a different team than team 1', data.get('team2'))

    referee_id = None
    if data.get('referee') is not None:
        referee_id = parse_id(data['referee'])
        if referee_id is None:
            errors.add('referee', 'referee must be a valid id', data['referee'])

    errors.raise_if_any()
    return {
        'tournament_id': tournament_id,
        'team1_id': team1_id,
        'team2_id': team2_id,
        'scheduled_time': scheduled_time,
        'referee_id': referee_id,
    }


def validate_score_submission(data) -> Tuple[dict, Optional[int]]:
    """Return (scores, expected_version) from a score submission body."""
    data = _body(data)
    errors = FieldErrors()

    scores = _check_scores(errors, data)

    version = data.get('version')
    if version is not None and not _is_int(version):
        errors.add('version', 'Version must be an integer', version)

    errors.raise_if_any()
    return scores, version


def validate_scores(scores) -> dict:
    """Validate a bare {team1: {...}, team2: {...}} mapping."""
    errors = FieldErrors()
    normalized = _check_scores(errors, {'scores': scores})
    errors.raise_if_any()
    return normalized


def _check_scores(errors: FieldErrors, data: dict) -> dict:
    scores = errors.require(data, 'scores', 'Scores are required')
    normalized = {}

    if scores is not None and not isinstance(scores, dict):
        errors.add('scores', 'Scores must be an object', scores)
    elif scores is not None:
        for side in ('team1', 'team2'):
            param = f'scores.{side}'
            entry = scores.get(side)
            if not isinstance(entry, dict):
                errors.add(param, f'Scores for {side} are required', entry)
                continue

            total = entry.get('total')
            total_ok = _is_count(total)
            if not total_ok:
                errors.add(f'{param}.total', 'Total must be a non-negative integer', total)

            sets = entry.get('sets')
            if sets is None:
                sets = []
            if not isinstance(sets, list) or not all(_is_count(s) for s in sets):
                errors.add(f'{param}.sets', 'Sets must be a list of non-negative integers', sets)
                continue

            if total_ok and sets and sum(sets) != total:
                errors.add(f'{param}.total', f'Total must equal the sum of sets ({sum(sets)})', total)

            normalized[side] = {'sets': sets, 'total': total}

    return normalized


def validate_game_update(data) -> dict:
    """Only the keys present in the body end up in the result."""
    data = _body(data)
    errors = FieldErrors()
    changes = {}

    if 'scheduledTime' in data:
        scheduled_time = _check_datetime(errors, data, 'scheduledTime', 'Scheduled time is required')
        if scheduled_time is not None:
            changes['scheduled_time'] = scheduled_time

    if 'referee' in data:
        if data['referee'] is None:
            changes['referee_id'] = None
        else:
            referee_id = parse_id(data['referee'])
            if referee_id is None:
                errors.add('referee', 'referee must be a valid id', data['referee'])
            else:
                changes['referee_id'] = referee_id

    if not data.keys() & {'scheduledTime', 'referee'}:
        errors.add('scheduledTime', 'Scheduled time or referee is required')

    errors.raise_if_any()
    return changes


# ==================== Teams ====================

def validate_team(data) -> dict:
    data = _body(data)
    errors = FieldErrors()

    name = errors.require_text(data, 'name', 'Name is required')
    coach = errors.require_text(data, 'coach', 'Coach is required')
    players = data.get('players')
    roster = []

    if not isinstance(players, list) or not players:
        errors.add('players', 'Players are required', players)
    else:
        positions = [p.value for p in PlayerPosition]
        seen_numbers = set()
        for i, player in enumerate(players):
            param = f'players[{i}]'
            if not isinstance(player, dict):
                errors.add(param, 'Player must be an object', player)
                continue

            player_name = errors.require_text(player, 'name', f'{param}.name is required')
            number = player.get('number')
            position = player.get('position')

            if not _is_count(number):
                errors.add(f'{param}.number', 'Number must be a non-negative integer', number)
            elif number in seen_numbers:
                errors.add(f'{param}.number', f'Jersey number {number} is already taken', number)
            else:
                seen_numbers.add(number)

            if position not in positions:
                errors.add(f'{param}.position', f"Position must be one of: {', '.join(positions)}", position)

            roster.append({
                'name': player_name,
                'number': number,
                'position': position,
            })

    errors.raise_if_any()
    return {'name': name, 'coach': coach, 'players': roster}


# ==================== Tournaments ====================

def validate_tournament(data) -> dict:
    data = _body(data)
    errors = FieldErrors()

    name = errors.require_text(data, 'name', 'Name is required')
    start_date = _check_datetime(errors, data, 'startDate', 'Start date is required')
    end_date = _check_datetime(errors, data, 'endDate', 'End date is required')
    fmt = errors.require(data, 'format', 'Format is required')
    location = errors.require_text(data, 'location', 'Location is required')

    formats = [f.value for f in TournamentFormat]
    if fmt is not None and fmt not in formats:
        errors.add('format', f"Format must be one of: {', '.join(formats)}", fmt)

    if start_date and end_date and end_date < start_date:
        errors.add('endDate', 'End date must not be before start date', data.get('endDate'))

    errors.raise_if_any()
    return {
        'name': name,
        'start_date': start_date,
        'end_date': end_date,
        'format': fmt,
        'location': location,
    }


def validate_tournament_status(data) -> TournamentStatus:
    data = _body(data)
    errors = FieldErrors()

    status = errors.require(data, 'status', 'Status is required')
    statuses = [s.value for s in TournamentStatus]
    if status is not None and status not in statuses:
        errors.add('status', f"Status must be one of: {', '.join(statuses)}", status)

    errors.raise_if_any()
    return TournamentStatus(status)


def validate_tournament_teams(data) -> List[int]:
    data = _body(data)
    errors = FieldErrors()

    teams = errors.require(data, 'teams', 'Teams are required')
    team_ids = []
    if teams is not None:
        if not isinstance(teams, list):
            errors.add('teams', 'Teams must be a list of team ids', teams)
        else:
            for i, raw in enumerate(teams):
                team_id = parse_id(raw)
                if team_id is None:
                    errors.add(f'teams[{i}]', 'Team must be a valid id', raw)
                elif team_id not in team_ids:
                    team_ids.append(team_id)

    errors.raise_if_any()
    return team_ids


def field_error(param: str, msg: str, value: Any = None) -> ValidationError:
    errors = FieldErrors()
    errors.add(param, msg, value)
    return ValidationError(errors.errors)
