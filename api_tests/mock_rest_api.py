"""Mock Reqres + GoRest API server for offline suite runs.

Implements the endpoints the suites exercise, with the same contracts as
the public services:

Reqres (https://reqres.in):
- GET    /api/users?page=N       paginated user list
- GET    /api/users/<id>         single user (404 if unknown)
- POST   /api/users              create (echo + id + createdAt)
- PUT    /api/users/<id>         update (echo + updatedAt)
- DELETE /api/users/<id>         204
- POST   /api/register           token for defined users, 400 otherwise
- POST   /api/login              token for defined users, 400 otherwise

GoRest (https://gorest.co.in), bearer token required for writes and reads
of individual users:
- POST   /public/v2/users        create (201)
- GET    /public/v2/users/<id>   read (404 if unknown)
- PUT    /public/v2/users/<id>   update (200)
- DELETE /public/v2/users/<id>   204

State is in memory; call reset_mock_state() between runs.
"""
from __future__ import annotations

import itertools
from datetime import datetime, timezone
from typing import Any, Dict

from flask import Flask, Response, jsonify, request

MOCK_ACCESS_TOKEN = "mock-gorest-access-token"
REQRES_TOKEN = "QpwL5tke4Pnpja7X4"

# Reqres fixture data (the public service's defined users)
REQRES_USERS = [
    {"id": 1, "email": "george.bluth@reqres.in", "first_name": "George", "last_name": "Bluth"},
    {"id": 2, "email": "janet.weaver@reqres.in", "first_name": "Janet", "last_name": "Weaver"},
    {"id": 3, "email": "emma.wong@reqres.in", "first_name": "Emma", "last_name": "Wong"},
    {"id": 4, "email": "eve.holt@reqres.in", "first_name": "Eve", "last_name": "Holt"},
    {"id": 5, "email": "charles.morris@reqres.in", "first_name": "Charles", "last_name": "Morris"},
    {"id": 6, "email": "tracey.ramos@reqres.in", "first_name": "Tracey", "last_name": "Ramos"},
    {"id": 7, "email": "michael.lawson@reqres.in", "first_name": "Michael", "last_name": "Lawson"},
    {"id": 8, "email": "lindsay.ferguson@reqres.in", "first_name": "Lindsay", "last_name": "Ferguson"},
    {"id": 9, "email": "tobias.funke@reqres.in", "first_name": "Tobias", "last_name": "Funke"},
    {"id": 10, "email": "byron.fields@reqres.in", "first_name": "Byron", "last_name": "Fields"},
    {"id": 11, "email": "george.edwards@reqres.in", "first_name": "George", "last_name": "Edwards"},
    {"id": 12, "email": "rachel.howell@reqres.in", "first_name": "Rachel", "last_name": "Howell"},
]
REQRES_PER_PAGE = 6
REQRES_SUPPORT = {
    "url": "https://contentcaddy.io?utm_source=reqres&utm_medium=json&utm_campaign=referral",
    "text": "Tired of writing endless social media content? Let Content Caddy generate it for you.",
}

# GoRest in-memory state
GOREST_USERS: Dict[int, Dict[str, Any]] = {}
_gorest_ids = itertools.count(7000001)


def reset_mock_state() -> None:
    """Forget every GoRest user created so far."""
    global _gorest_ids
    GOREST_USERS.clear()
    _gorest_ids = itertools.count(7000001)


def _now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"


def _reqres_user(user: Dict[str, Any]) -> Dict[str, Any]:
    return {**user, "avatar": f"https://reqres.in/img/faces/{user['id']}-image.jpg"}


def create_mock_api_app() -> Flask:
    """Create and configure the mock API Flask app."""
    app = Flask(__name__)
    app.config['TESTING'] = True

    @app.route('/health')
    def health():
        return jsonify({"status": "ok"})

    # ------------------------------------------------------------------ Reqres
    @app.route('/api/users', methods=['GET'])
    def reqres_list_users():
        page = request.args.get('page', default=1, type=int) or 1
        start = (page - 1) * REQRES_PER_PAGE
        data = [_reqres_user(u) for u in REQRES_USERS[start:start + REQRES_PER_PAGE]]
        total = len(REQRES_USERS)
        return jsonify({
            "page": page,
            "per_page": REQRES_PER_PAGE,
            "total": total,
            "total_pages": (total + REQRES_PER_PAGE - 1) // REQRES_PER_PAGE,
            "data": data,
            "support": REQRES_SUPPORT,
        })

    @app.route('/api/users/<int:user_id>', methods=['GET'])
    def reqres_get_user(user_id: int):
        for user in REQRES_USERS:
            if user['id'] == user_id:
                return jsonify({"data": _reqres_user(user), "support": REQRES_SUPPORT})
        return jsonify({}), 404

    @app.route('/api/users', methods=['POST'])
    def reqres_create_user():
        payload = request.get_json(silent=True) or {}
        return jsonify({**payload, "id": str(len(REQRES_USERS) + 1), "createdAt": _now()}), 201

    @app.route('/api/users/<int:user_id>', methods=['PUT', 'PATCH'])
    def reqres_update_user(user_id: int):
        payload = request.get_json(silent=True) or {}
        return jsonify({**payload, "updatedAt": _now()})

    @app.route('/api/users/<int:user_id>', methods=['DELETE'])
    def reqres_delete_user(user_id: int):
        return Response(status=204)

    def _credentials_check(action: str):
        payload = request.get_json(silent=True) or {}
        email = payload.get('email')
        password = payload.get('password')
        if not email:
            return jsonify({"error": "Missing email or username"}), 400
        if not password:
            return jsonify({"error": "Missing password"}), 400
        user = next((u for u in REQRES_USERS if u['email'] == email), None)
        if user is None:
            if action == 'register':
                return jsonify({"error": "Note: Only defined users succeed registration"}), 400
            return jsonify({"error": "user not found"}), 400
        if action == 'register':
            return jsonify({"id": user['id'], "token": REQRES_TOKEN})
        return jsonify({"token": REQRES_TOKEN})

    @app.route('/api/register', methods=['POST'])
    def reqres_register():
        return _credentials_check('register')

    @app.route('/api/login', methods=['POST'])
    def reqres_login():
        return _credentials_check('login')

    # ------------------------------------------------------------------ GoRest
    def _gorest_unauthorized():
        auth = request.headers.get('Authorization', '')
        if auth != f"Bearer {MOCK_ACCESS_TOKEN}":
            return jsonify({"message": "Authentication failed"}), 401
        return None

    def _gorest_validate(payload: Dict[str, Any], partial: bool = False):
        errors = []
        for name in ('name', 'gender', 'email', 'status'):
            if name not in payload:
                if not partial:
                    errors.append({"field": name, "message": "can't be blank"})
                continue
            value = payload[name]
            if name == 'gender' and str(value).lower() not in ('male', 'female'):
                errors.append({"field": name, "message": "can't be blank, can be male of female"})
            if name == 'status' and str(value).lower() not in ('active', 'inactive'):
                errors.append({"field": name, "message": "can't be blank"})
        email = payload.get('email')
        if email and any(u['email'] == email for u in GOREST_USERS.values()
                         if u['id'] != payload.get('id')):
            errors.append({"field": "email", "message": "has already been taken"})
        return errors

    @app.route('/public/v2/users', methods=['POST'])
    def gorest_create_user():
        denied = _gorest_unauthorized()
        if denied:
            return denied
        payload = request.get_json(silent=True) or {}
        errors = _gorest_validate(payload)
        if errors:
            return jsonify(errors), 422
        user = {
            "id": next(_gorest_ids),
            "name": payload['name'],
            "email": payload['email'],
            "gender": str(payload['gender']).lower(),
            "status": str(payload['status']).lower(),
        }
        GOREST_USERS[user['id']] = user
        return jsonify(user), 201

    @app.route('/public/v2/users/<int:user_id>', methods=['GET'])
    def gorest_get_user(user_id: int):
        denied = _gorest_unauthorized()
        if denied:
            return denied
        user = GOREST_USERS.get(user_id)
        if user is None:
            return jsonify({"message": "Resource not found"}), 404
        return jsonify(user)

    @app.route('/public/v2/users/<int:user_id>', methods=['PUT', 'PATCH'])
    def gorest_update_user(user_id: int):
        denied = _gorest_unauthorized()
        if denied:
            return denied
        user = GOREST_USERS.get(user_id)
        if user is None:
            return jsonify({"message": "Resource not found"}), 404
        payload = request.get_json(silent=True) or {}
        errors = _gorest_validate({**payload, "id": user_id}, partial=True)
        if errors:
            return jsonify(errors), 422
        for name in ('name', 'email', 'gender', 'status'):
            if name in payload:
                user[name] = payload[name] if name in ('name', 'email') else str(payload[name]).lower()
        return jsonify(user)

    @app.route('/public/v2/users/<int:user_id>', methods=['DELETE'])
    def gorest_delete_user(user_id: int):
        denied = _gorest_unauthorized()
        if denied:
            return denied
        if GOREST_USERS.pop(user_id, None) is None:
            return jsonify({"message": "Resource not found"}), 404
        return Response(status=204)

    return app


if __name__ == '__main__':
    create_mock_api_app().run(host='127.0.0.1', port=5556, debug=True)
