"""
Unit tests for the access control gate.
"""
import pytest
from flask import request

from courtside.auth import ensure_admin, ensure_can_officiate, load_user_from_request
from courtside.errors import Forbidden
from courtside.models import User, Role


class TestEnsureCanOfficiate:

    def test_admin_always_allowed(self, world):
        ensure_can_officiate(world.admin, world.game)

    def test_assigned_referee_allowed(self, world):
        ensure_can_officiate(world.referee, world.game)

    def test_other_referee_rejected(self, world):
        with pytest.raises(Forbidden) as exc:
            ensure_can_officiate(world.other_referee, world.game)
        assert exc.value.message == 'Only the assigned referee can verify this game'

    def test_action_named_in_message(self, world):
        with pytest.raises(Forbidden) as exc:
            ensure_can_officiate(world.other_referee, world.game, 'start')
        assert exc.value.message == 'Only the assigned referee can start this game'

    def test_referee_rejected_when_nobody_assigned(self, world):
        world.game.referee_id = None
        with pytest.raises(Forbidden):
            ensure_can_officiate(world.referee, world.game)

    def test_plain_user_rejected(self, world):
        with pytest.raises(Forbidden) as exc:
            ensure_can_officiate(world.fan, world.game)
        assert exc.value.message == 'Access denied'

    def test_unknown_role_rejected(self, world, mocker):
        stranger = mocker.Mock(role='spectator', id=world.referee.id)
        with pytest.raises(Forbidden):
            ensure_can_officiate(stranger, world.game)


class TestEnsureAdmin:

    def test_admin(self, world):
        ensure_admin(world.admin)

    @pytest.mark.parametrize('who', ['referee', 'fan'])
    def test_non_admin(self, world, who):
        with pytest.raises(Forbidden) as exc:
            ensure_admin(getattr(world, who))
        assert exc.value.status_code == 403


class TestTokenLoader:

    def test_bearer_token(self, app, world):
        with app.test_request_context(headers={'Authorization': f'Bearer {world.fan.api_token}'}):
            assert load_user_from_request(request).id == world.fan.id

    def test_x_auth_token(self, app, world):
        with app.test_request_context(headers={'x-auth-token': world.admin.api_token}):
            assert load_user_from_request(request).id == world.admin.id

    def test_unknown_token(self, app, world):
        with app.test_request_context(headers={'Authorization': 'Bearer nope'}):
            assert load_user_from_request(request) is None

    def test_no_token(self, app, world):
        with app.test_request_context():
            assert load_user_from_request(request) is None


class TestUserModel:

    def test_tokens_are_unique(self, app_ctx):
        a = User.create_user('a', 'a@example.com')
        b = User.create_user('b', 'b@example.com')
        assert a.api_token != b.api_token
        assert a.role is Role.USER

    def test_password_hashing(self, app_ctx):
        user = User.create_user('a', 'a@example.com', password='secret')
        assert user.password_hash != 'secret'
        assert user.check_password('secret')
        assert not user.check_password('wrong')
