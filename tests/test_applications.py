from backend.app.models import Course, SelectedCandidate, TutorApplication


def _submission(**overrides) -> dict:
    body = {
        "name": "John Doe",
        "email": "candidate1@uni.edu",
        "course": "COSC1111",
        "courseName": "Python Development",
        "role": "tutorial",
        "previousRoles": "Tutor at RMIT",
        "availability": "Full Time",
        "skills": ["Python", "SQL"],
        "credentials": "Bachelor of CS",
    }
    body.update(overrides)
    return body


# -------------------- Submission --------------------

def test_submit_application_success(client, db_session, make_user):
    _, headers = make_user("candidate")
    r = client.post("/applications", json=_submission(), headers=headers)
    assert r.status_code == 201, r.text
    data = r.json()
    assert data["message"] == "Application submitted successfully"
    app = data["application"]
    assert app["session_type"] == "tutorial"
    assert app["is_selected"] is False
    assert app["rank"] is None
    assert app["skills"] == "Python, SQL"
    assert app["course"]["code"] == "COSC1111"
    assert app["course"]["name"] == "Python Development"


def test_submit_creates_missing_course_with_current_semester(client, db_session, make_user):
    _, headers = make_user("candidate")
    r = client.post("/applications", json=_submission(course="COSC7777", courseName="Security"), headers=headers)
    assert r.status_code == 201, r.text

    course = db_session.query(Course).filter(Course.code == "COSC7777").one()
    assert course.name == "Security"
    year, term = course.semester.split("-")
    assert len(year) == 4 and term in ("1", "2")


def test_submit_renames_existing_course_when_name_differs(client, db_session, make_user, make_course):
    _, headers = make_user("candidate")
    course = make_course("COSC1111", "Old Name")

    r = client.post("/applications", json=_submission(), headers=headers)
    assert r.status_code == 201, r.text

    db_session.expire_all()
    assert db_session.get(Course, course.id).name == "Python Development"
    assert db_session.query(Course).filter(Course.code == "COSC1111").count() == 1


def test_duplicate_submission_rejected(client, db_session, make_user):
    _, headers = make_user("candidate")
    assert client.post("/applications", json=_submission(), headers=headers).status_code == 201

    r = client.post("/applications", json=_submission(), headers=headers)
    assert r.status_code == 400, r.text
    assert r.json()["message"] == "You have already applied for tutorial role in this course."
    assert db_session.query(TutorApplication).count() == 1


def test_lab_and_tutorial_for_same_course_coexist(client, db_session, make_user):
    _, headers = make_user("candidate")
    assert client.post("/applications", json=_submission(role="tutorial"), headers=headers).status_code == 201
    r = client.post("/applications", json=_submission(role="lab"), headers=headers)
    assert r.status_code == 201, r.text
    assert r.json()["application"]["session_type"] == "lab"
    assert db_session.query(TutorApplication).count() == 2


def test_unknown_role_falls_back_to_tutorial_session(client, make_user):
    _, headers = make_user("candidate")
    r = client.post("/applications", json=_submission(role="marker"), headers=headers)
    assert r.status_code == 201, r.text
    assert r.json()["application"]["session_type"] == "tutorial"
    assert r.json()["application"]["role_applied"] == "marker"


def test_submit_for_unknown_email_returns_404(client, make_user):
    _, headers = make_user("candidate")
    r = client.post("/applications", json=_submission(email="ghost@uni.edu"), headers=headers)
    assert r.status_code == 404, r.text
    assert r.json()["message"] == "User not found"


def test_submit_validation_messages(client, make_user):
    _, headers = make_user("candidate")
    cases = [
        ({"name": "  "}, "Name is required and must be a non-empty string"),
        ({"email": "not-an-email"}, "Invalid email format"),
        ({"course": ""}, "Course is required"),
        ({"availability": "Weekends"}, "Availability must be either 'Full Time' or 'Part Time'"),
        ({"credentials": ""}, "Academic credentials are required"),
        ({"previousRoles": None}, "Previous roles information is required"),
        ({"skills": 42}, "Skills must be an array or string"),
    ]
    for override, message in cases:
        r = client.post("/applications", json=_submission(**override), headers=headers)
        assert r.status_code == 400, (override, r.text)
        assert r.json()["message"] == message


def test_submit_requires_candidate_role(client, make_user):
    _, headers = make_user("lecturer")
    r = client.post("/applications", json=_submission(), headers=headers)
    assert r.status_code == 403, r.text


def test_submit_requires_authentication(client):
    r = client.post("/applications", json=_submission())
    assert r.status_code == 401, r.text
    assert r.json()["success"] is False


# -------------------- Review (PATCH) --------------------

def test_lecturer_selects_ranks_and_comments(client, db_session, make_user, make_course, assign, make_application):
    lecturer, headers = make_user("lecturer")
    course = make_course("COSC1111")
    assign(lecturer, course)
    cand, _ = make_user("candidate")
    a = make_application(cand, course)

    r = client.patch(
        f"/applications/{a.id}",
        json={"is_selected": True, "rank": 1, "comment": "Excellent"},
        headers=headers,
    )
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["message"] == "Application updated"
    assert body["application"]["is_selected"] is True
    assert body["application"]["rank"] == 1
    assert body["application"]["comment"] == "Excellent"

    rows = db_session.query(SelectedCandidate).filter(SelectedCandidate.application_id == a.id).all()
    assert [(r.selected_by_id) for r in rows] == [lecturer.id]


def test_duplicate_rank_reported_as_400(client, make_user, make_course, assign, make_application):
    lecturer, headers = make_user("lecturer")
    course = make_course("COSC1111")
    assign(lecturer, course)
    alice, _ = make_user("candidate", name="Alice")
    bob, _ = make_user("candidate", name="Bob")
    make_application(alice, course, is_selected=True, rank=1)
    b = make_application(bob, course, is_selected=True)

    r = client.patch(f"/applications/{b.id}", json={"rank": 1}, headers=headers)
    assert r.status_code == 400, r.text
    assert r.json()["message"] == "Rank 1 is already assigned to Alice. Please choose a different rank."


def test_review_validation_errors(client, make_user, make_course, assign, make_application):
    lecturer, headers = make_user("lecturer")
    course = make_course("COSC1111")
    assign(lecturer, course)
    cand, _ = make_user("candidate")
    a = make_application(cand, course)

    for rank in (0, 101, 2.5, "3", True):
        r = client.patch(f"/applications/{a.id}", json={"rank": rank}, headers=headers)
        assert r.status_code == 400, (rank, r.text)
        assert r.json()["message"] == "Rank must be a positive integer between 1 and 100"

    r = client.patch(f"/applications/{a.id}", json={"comment": "x" * 1001}, headers=headers)
    assert r.status_code == 400, r.text
    assert r.json()["message"] == "Comment cannot exceed 1000 characters"

    r = client.patch(f"/applications/{a.id}", json={"is_selected": "yes"}, headers=headers)
    assert r.status_code == 400, r.text

    r = client.patch("/applications/abc", json={"comment": "hi"}, headers=headers)
    assert r.status_code == 400, r.text
    assert r.json()["message"] == "Invalid application ID"


def test_review_missing_application_returns_404(client, make_user):
    _, headers = make_user("lecturer")
    r = client.patch("/applications/9999", json={"is_selected": True}, headers=headers)
    assert r.status_code == 404, r.text
    assert r.json()["message"] == "Application not found"


def test_review_rejects_lecturer_id_of_someone_else(client, make_user, make_course, assign, make_application):
    lecturer, headers = make_user("lecturer")
    other, _ = make_user("lecturer")
    course = make_course("COSC1111")
    assign(lecturer, course)
    cand, _ = make_user("candidate")
    a = make_application(cand, course)

    r = client.patch(
        f"/applications/{a.id}",
        json={"is_selected": True, "lecturerId": other.id},
        headers=headers,
    )
    assert r.status_code == 403, r.text

    r = client.patch(
        f"/applications/{a.id}",
        json={"is_selected": True, "lecturerId": lecturer.id},
        headers=headers,
    )
    assert r.status_code == 200, r.text


def test_candidate_cannot_review(client, make_user, make_course, make_application):
    cand, headers = make_user("candidate")
    course = make_course("COSC1111")
    a = make_application(cand, course)
    r = client.patch(f"/applications/{a.id}", json={"is_selected": True}, headers=headers)
    assert r.status_code == 403, r.text
    assert r.json()["message"] == "Access denied. Lecturer role required."


def test_empty_review_body_changes_nothing(client, make_user, make_course, assign, make_application):
    lecturer, headers = make_user("lecturer")
    course = make_course("COSC1111")
    assign(lecturer, course)
    cand, _ = make_user("candidate")
    a = make_application(cand, course, is_selected=True, rank=2)

    r = client.patch(f"/applications/{a.id}", json={}, headers=headers)
    assert r.status_code == 200, r.text
    assert r.json()["application"]["rank"] == 2
    assert r.json()["application"]["is_selected"] is True


# -------------------- Listing --------------------

def test_lecturer_listing_is_scoped_and_filtered(client, make_user, make_course, assign, make_application):
    lecturer, headers = make_user("lecturer")
    mine = make_course("COSC1111")
    other = make_course("COSC2222")
    assign(lecturer, mine)
    alice, _ = make_user("candidate", name="Alice Smith")
    bob, _ = make_user("candidate", name="Bob Jones")
    make_application(alice, mine, session_type="tutorial", availability="Full Time", skills="Python, React")
    make_application(bob, mine, session_type="lab", availability="Part Time", skills="Java")
    make_application(bob, other)

    r = client.get(f"/applications/lecturer/{lecturer.id}", headers=headers)
    assert r.status_code == 200, r.text
    assert len(r.json()) == 2
    assert {a["course"]["code"] for a in r.json()} == {"COSC1111"}

    r = client.get(f"/applications/lecturer/{lecturer.id}", params={"name": "alice"}, headers=headers)
    assert [a["user"]["name"] for a in r.json()] == ["Alice Smith"]

    r = client.get(f"/applications/lecturer/{lecturer.id}", params={"sessionType": "lab"}, headers=headers)
    assert [a["user"]["name"] for a in r.json()] == ["Bob Jones"]

    r = client.get(f"/applications/lecturer/{lecturer.id}", params={"availability": "Full Time"}, headers=headers)
    assert [a["user"]["name"] for a in r.json()] == ["Alice Smith"]

    r = client.get(f"/applications/lecturer/{lecturer.id}", params={"skills": "java"}, headers=headers)
    assert [a["user"]["name"] for a in r.json()] == ["Bob Jones"]

    r = client.get(f"/applications/lecturer/{lecturer.id}", params={"sessionType": "seminar"}, headers=headers)
    assert r.status_code == 400, r.text


def test_lecturer_cannot_list_another_lecturers_applications(client, make_user):
    _, headers = make_user("lecturer")
    other, _ = make_user("lecturer")
    r = client.get(f"/applications/lecturer/{other.id}", headers=headers)
    assert r.status_code == 403, r.text


def test_candidate_lists_only_own_applications(client, make_user, make_course, make_application):
    me, headers = make_user("candidate")
    other, _ = make_user("candidate")
    course = make_course("COSC1111")
    make_application(me, course)
    make_application(other, course)

    r = client.get(f"/applications/user/{me.id}", headers=headers)
    assert r.status_code == 200, r.text
    assert [a["user"]["id"] for a in r.json()] == [me.id]

    r = client.get(f"/applications/user/{other.id}", headers=headers)
    assert r.status_code == 403, r.text

    r = client.get("/applications", headers=headers)
    assert r.status_code == 403, r.text


def test_admin_lists_all_applications(client, make_user, make_course, make_application):
    _, headers = make_user("admin")
    c1, _ = make_user("candidate")
    c2, _ = make_user("candidate")
    course = make_course("COSC1111")
    make_application(c1, course)
    make_application(c2, course)

    r = client.get("/applications", headers=headers)
    assert r.status_code == 200, r.text
    assert len(r.json()) == 2


# -------------------- Withdrawal --------------------

def test_withdraw_removes_application_and_selections(
    client, db_session, make_user, make_course, assign, make_application
):
    lecturer, lecturer_headers = make_user("lecturer")
    cand, headers = make_user("candidate")
    course = make_course("COSC1111")
    assign(lecturer, course)
    a = make_application(cand, course)
    assert client.patch(f"/applications/{a.id}", json={"is_selected": True}, headers=lecturer_headers).status_code == 200
    app_id = a.id

    r = client.delete(f"/applications/{app_id}", headers=headers)
    assert r.status_code == 200, r.text
    assert r.json()["message"] == "Application withdrawn successfully"

    db_session.expire_all()
    assert db_session.get(TutorApplication, app_id) is None
    assert db_session.query(SelectedCandidate).count() == 0


def test_withdraw_missing_application_returns_404(client, make_user):
    _, headers = make_user("candidate")
    r = client.delete("/applications/9999", headers=headers)
    assert r.status_code == 404, r.text
    assert r.json()["message"] == "Application not found"


def test_candidate_cannot_withdraw_someone_elses_application(client, db_session, make_user, make_course, make_application):
    owner, _ = make_user("candidate")
    _, headers = make_user("candidate")
    course = make_course("COSC1111")
    a = make_application(owner, course)

    r = client.delete(f"/applications/{a.id}", headers=headers)
    assert r.status_code == 403, r.text
    db_session.expire_all()
    assert db_session.get(TutorApplication, a.id) is not None


def test_withdraw_requires_authentication(client, make_user, make_course, make_application):
    owner, _ = make_user("candidate")
    a = make_application(owner, make_course("COSC1111"))
    r = client.delete(f"/applications/{a.id}")
    assert r.status_code == 401, r.text
