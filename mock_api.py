"""Mock Healto doctor API.

Flask server with the doctor endpoints used by the client:
- Login / logout with bearer tokens
- Profile, specializations, password change
- Appointment list (with filters), detail, start / end, history
- Availability toggle

Run with: python mock_api.py
Login with username "doctor" / password "secret".
"""
import os
import uuid
from datetime import date, datetime, timedelta
from functools import wraps

from flask import Flask, g, jsonify, request
from flask_cors import CORS

from healto_doctor.appointments import format_dashboard_date
from healto_doctor.availability import UnavailabilityError, validate_unavailability
from healto_doctor.logging_config import RequestIDMiddleware

MOCK_API_PORT = int(os.getenv("MOCK_API_PORT", "5000"))
API_PREFIX = "/healto/public/api"

DEMO_USERNAME = "doctor"
DEMO_PASSWORD = "secret"

SPECIALIZATIONS = [
    {"id": 1, "name": "General Physician"},
    {"id": 2, "name": "Cardiology"},
    {"id": 3, "name": "Dermatology"},
    {"id": 4, "name": "Pediatrics"},
]

PATIENTS = [
    {"name": "Ravi Kumar", "age": 42, "phone": "9876543210", "email": "ravi@example.com", "gender": "male"},
    {"name": "Anita Sharma", "age": 35, "phone": "9876501234", "email": "anita@example.com", "gender": "female"},
    {"name": "John Mathew", "age": 58, "phone": "9876512345", "email": "john@example.com", "gender": "male"},
    {"name": "Priya Nair", "age": 27, "phone": "9876523456", "email": "priya@example.com", "gender": "female"},
]

PROFILE_FIELDS = (
    "name", "email", "phone", "gender", "qualification", "experience_years",
    "blood_group", "address", "specialization_id", "info", "dob",
)


def _seed_doctor():
    return {
        "id": 7,
        "name": "Meera Iyer",
        "email": "meera.iyer@example.com",
        "phone": "9000000007",
        "gender": "female",
        "qualification": "MBBS, MD",
        "experience_years": 12,
        "blood_group": "O+",
        "address": "12 MG Road, Bengaluru",
        "specialization_ids": [1],
        "rating": 4.7,
        "reviews": 128,
        "info": "General physician",
        "dob": "1984-06-02",
        "profile_image": None,
        "is_available": True,
        "unavailability": None,
    }


def _seed_appointments(today: date):
    """Four appointments today, one tomorrow, one completed yesterday."""
    plan = [
        (0, "09:30", "scheduled", 0, "Fever and cough"),
        (0, "11:00", "scheduled", 1, "Follow-up on blood test"),
        (0, "08:45", "completed", 2, "Chest pain"),
        (0, "15:15", "scheduled", 3, "Skin rash"),
        (1, "10:00", "scheduled", 1, "Migraine"),
        (-1, "12:30", "completed", 0, "Back pain"),
    ]
    appointments = []
    for index, (offset, time_str, status, patient_index, symptoms) in enumerate(plan):
        patient = PATIENTS[patient_index]
        appointments.append({
            "id": 101 + index,
            "token_number": f"T{index + 1:03d}",
            "patient": dict(patient),
            "symptoms": symptoms,
            "reason_for_visit": symptoms,
            "day": today + timedelta(days=offset),
            "scheduled_time": time_str,
            "status": status,
        })
    return appointments


def _summary(apt):
    patient = apt["patient"]
    return {
        "id": apt["id"],
        "token_number": apt["token_number"],
        "patient_name": patient["name"],
        "patient_image": patient.get("profile_image"),
        "patient_phone": patient["phone"],
        "age": patient["age"],
        "symptoms": apt["symptoms"],
        "appointment_date": format_dashboard_date(apt["day"]),
        "scheduled_time": apt["scheduled_time"],
        "status": apt["status"],
    }


def _detail(apt):
    return {
        "id": apt["id"],
        "token_number": apt["token_number"],
        "symptoms": apt["symptoms"],
        "reason_for_visit": apt["reason_for_visit"],
        "appointment_date": format_dashboard_date(apt["day"]),
        "scheduled_time": apt["scheduled_time"],
        "status": apt["status"],
        "patient": dict(apt["patient"]),
    }


def _error(message, status):
    return jsonify({"success": False, "message": message}), status


def _parse_iso_date(value):
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        return None


def create_app(today: date = None) -> Flask:
    """
    Build a mock API app with fresh in-memory state.

    Args:
        today: Day the seeded appointments are centered on (default: today)
    """
    app = Flask(__name__)
    CORS(app)

    # In-memory storage
    state = {
        "doctor": _seed_doctor(),
        "password": DEMO_PASSWORD,
        "tokens": set(),
        "appointments": _seed_appointments(today or date.today()),
        "today": today or date.today(),
        "inactive_periods": [],
    }
    app.config["MOCK_STATE"] = state

    def require_token(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            header = request.headers.get("Authorization", "")
            token = header[len("Bearer "):] if header.startswith("Bearer ") else None
            if not token or token not in state["tokens"]:
                return _error("Unauthenticated.", 401)
            g.token = token
            return view(*args, **kwargs)
        return wrapper

    def find_appointment(appointment_id):
        return next((a for a in state["appointments"] if a["id"] == appointment_id), None)

    @app.route(f"{API_PREFIX}/doctor/login", methods=["POST"])
    def login():
        """POST /doctor/login - {"username": ..., "password": ...}"""
        data = request.get_json(silent=True) or {}
        username = (data.get("username") or "").strip()
        password = (data.get("password") or "").strip()

        if not username or not password:
            return _error("The username and password fields are required.", 422)

        if username != DEMO_USERNAME or password != state["password"]:
            return _error("Invalid username or password", 401)

        token = f"mock-{uuid.uuid4().hex}"
        state["tokens"].add(token)
        return jsonify({
            "success": True,
            "message": "Login successful",
            "token": token,
            "data": {"doctor": state["doctor"]},
        })

    @app.route(f"{API_PREFIX}/doctor/logout", methods=["POST"])
    @require_token
    def logout():
        state["tokens"].discard(g.token)
        return jsonify({"success": True, "message": "Logged out"})

    @app.route(f"{API_PREFIX}/doctor/profile", methods=["GET"])
    @require_token
    def profile():
        return jsonify({"success": True, "data": {"doctor": state["doctor"]}})

    @app.route(f"{API_PREFIX}/doctor/edit", methods=["GET"])
    @require_token
    def edit_data():
        doctor_id = request.args.get("doctor_id")
        if str(state["doctor"]["id"]) != str(doctor_id):
            return _error("Doctor not found", 404)
        return jsonify({
            "success": True,
            "data": {"doctor": state["doctor"], "specializations": SPECIALIZATIONS},
        })

    @app.route(f"{API_PREFIX}/doctor/update-profile", methods=["POST"])
    @require_token
    def update_profile():
        """Accepts JSON or multipart/form-data (optional profile_image file)."""
        if request.is_json:
            data = request.get_json(silent=True) or {}
        else:
            data = request.form.to_dict()

        doctor = state["doctor"]
        for field in PROFILE_FIELDS:
            if field in data and data[field] not in (None, ""):
                doctor[field] = data[field]

        image = request.files.get("profile_image")
        if image is not None:
            doctor["profile_image"] = f"/uploads/doctors/{image.filename}"

        return jsonify({"success": True, "message": "Profile updated", "data": doctor})

    @app.route(f"{API_PREFIX}/doctor/change-password", methods=["POST"])
    @require_token
    def change_password():
        data = request.get_json(silent=True) or {}
        if data.get("current_password") != state["password"]:
            return _error("Current password is incorrect", 400)
        new_password = data.get("new_password") or ""
        if len(new_password) < 6:
            return _error("The new password must be at least 6 characters.", 422)
        if new_password != data.get("new_password_confirmation"):
            return _error("The new password confirmation does not match.", 422)
        state["password"] = new_password
        return jsonify({"success": True, "message": "Password changed"})

    @app.route(f"{API_PREFIX}/doctor/dashboard", methods=["GET"])
    @require_token
    def dashboard():
        todays = [a for a in state["appointments"] if a["day"] == state["today"]]
        return jsonify({
            "success": True,
            "data": {
                "total_patients_today": len(todays),
                "pending_patients": sum(1 for a in todays if a["status"] == "scheduled"),
                "completed_patients": sum(1 for a in todays if a["status"] == "completed"),
            },
        })

    @app.route(f"{API_PREFIX}/doctor/specializations", methods=["GET"])
    @require_token
    def specializations():
        return jsonify({"success": True, "data": SPECIALIZATIONS})

    @app.route(f"{API_PREFIX}/doctor/today-appointments", methods=["GET"])
    @require_token
    def today_appointments():
        todays = [_summary(a) for a in state["appointments"] if a["day"] == state["today"]]
        return jsonify({"success": True, "data": todays})

    @app.route(f"{API_PREFIX}/doctor/appointments", methods=["GET"])
    @require_token
    def list_appointments():
        """GET /doctor/appointments?status=&date=&start_date=&end_date=&patient_name=&sort_by=&page=&per_page="""
        items = list(state["appointments"])
        args = request.args

        if args.get("status"):
            items = [a for a in items if a["status"] == args["status"]]

        for key in ("date", "start_date", "end_date"):
            if args.get(key) and _parse_iso_date(args[key]) is None:
                return _error(f"The {key} must be a valid date (YYYY-MM-DD).", 422)

        if args.get("date"):
            wanted = _parse_iso_date(args["date"])
            items = [a for a in items if a["day"] == wanted]
        if args.get("start_date"):
            start = _parse_iso_date(args["start_date"])
            items = [a for a in items if a["day"] >= start]
        if args.get("end_date"):
            end = _parse_iso_date(args["end_date"])
            items = [a for a in items if a["day"] <= end]
        if args.get("patient_name"):
            needle = args["patient_name"].lower()
            items = [a for a in items if needle in a["patient"]["name"].lower()]

        items.sort(key=lambda a: (a["day"], a["scheduled_time"]), reverse=args.get("sort_by") == "latest")

        try:
            page = max(int(args.get("page", 1)), 1)
            per_page = max(int(args.get("per_page", 50)), 1)
        except ValueError:
            return _error("page and per_page must be integers.", 422)
        total = len(items)
        items = items[(page - 1) * per_page: page * per_page]

        return jsonify({
            "success": True,
            "data": [_summary(a) for a in items],
            "meta": {"page": page, "per_page": per_page, "total": total},
        })

    @app.route(f"{API_PREFIX}/doctor/appointments/<int:appointment_id>", methods=["GET"])
    @require_token
    def appointment_detail(appointment_id):
        apt = find_appointment(appointment_id)
        if apt is None:
            return _error("Appointment not found", 404)
        return jsonify({"success": True, "data": _detail(apt)})

    @app.route(f"{API_PREFIX}/doctor/appointments/<int:appointment_id>/start", methods=["POST"])
    @require_token
    def start_appointment(appointment_id):
        apt = find_appointment(appointment_id)
        if apt is None:
            return _error("Appointment not found", 404)
        if apt["status"] != "scheduled":
            return _error(f"Cannot start an appointment that is {apt['status']}", 422)
        apt["status"] = "in_progress"
        return jsonify({"success": True, "message": "Appointment started", "data": _detail(apt)})

    @app.route(f"{API_PREFIX}/doctor/appointments/<int:appointment_id>/end", methods=["POST"])
    @require_token
    def end_appointment(appointment_id):
        apt = find_appointment(appointment_id)
        if apt is None:
            return _error("Appointment not found", 404)
        if apt["status"] != "in_progress":
            return _error("Only an appointment in progress can be ended", 422)
        apt["status"] = "completed"
        return jsonify({"success": True, "message": "Appointment completed", "data": _detail(apt)})

    @app.route(f"{API_PREFIX}/doctor/appointment-history", methods=["GET"])
    @require_token
    def appointment_history():
        done = [_summary(a) for a in state["appointments"] if a["status"] == "completed"]
        return jsonify({"success": True, "data": done})

    @app.route(f"{API_PREFIX}/doctor/mark-unavailable", methods=["POST"])
    @require_token
    def mark_unavailable():
        """multipart/form-data: reason, unavailable_from, unavailable_until"""
        form = request.form
        try:
            validate_unavailability(
                form.get("reason", ""),
                form.get("unavailable_from", ""),
                form.get("unavailable_until", ""),
            )
        except UnavailabilityError as e:
            return _error(str(e), 422)

        doctor = state["doctor"]
        doctor["is_available"] = False
        doctor["unavailability"] = {
            "reason": form["reason"],
            "unavailable_from": form["unavailable_from"],
            "unavailable_until": form["unavailable_until"],
        }
        return jsonify({"success": True, "message": "Marked unavailable", "data": doctor})

    @app.route(f"{API_PREFIX}/doctor/mark-available", methods=["POST"])
    @require_token
    def mark_available():
        doctor = state["doctor"]
        doctor["is_available"] = True
        doctor["unavailability"] = None
        return jsonify({"success": True, "message": "Marked available", "data": doctor})

    @app.route(f"{API_PREFIX}/doctor/inactive", methods=["POST"])
    @require_token
    def mark_inactive():
        data = request.get_json(silent=True) or {}
        required = ("doctor_id", "start_date", "end_date", "content")
        missing = [field for field in required if not data.get(field)]
        if missing:
            return _error(f"Missing required field: {missing[0]}", 422)
        state["inactive_periods"].append(data)
        return jsonify({"success": True, "message": "Inactive period recorded", "data": data})

    app.wsgi_app = RequestIDMiddleware(app.wsgi_app)
    return app


app = create_app()


if __name__ == "__main__":
    print(f"Mock doctor API on http://localhost:{MOCK_API_PORT}{API_PREFIX}")
    print(f"Login: {DEMO_USERNAME} / {DEMO_PASSWORD}")
    app.run(port=MOCK_API_PORT, debug=True)
