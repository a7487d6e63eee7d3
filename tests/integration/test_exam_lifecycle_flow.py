from fastapi.testclient import TestClient

from tests.helpers.asserts import api_call, data_of, error_of


def test_exam_from_draft_to_aggregated_averages(client: TestClient):
    """
    Whole flow through the API: set up a course, build and publish an exam,
    two students sit it, staff grade and finalize, averages roll up.
    """
    print("\n[TEST] Exam lifecycle end to end")

    print("[1] Creating course and session")
    course = data_of(api_call(client, "POST", "/courses", json={"name": "Geography", "code": "GEO1", "credits": 5}))
    session = data_of(api_call(client, "POST", "/sessions", json={"name": "Spring", "academic_year": "2025-2026", "semester": 2}))
    assert course["credits"] == 5

    print("[2] Creating draft exam with two questions")
    exam = data_of(api_call(client, "POST", "/exams/", json={
        "title": "Geography Final",
        "course_id": course["id"],
        "session_id": session["id"],
        "exam_type": "final",
        "total_points": 20,
        "passing_grade": 10,
        "weight": 2,
        "date": "2026-03-02T08:30:00Z",
        "duration_minutes": 90,
    }))
    mcq = data_of(api_call(client, "POST", f"/exams/{exam['id']}/questions", json={
        "question_text": "Longest river?",
        "question_type": "multiple_choice",
        "options": [{"id": "nile", "text": "Nile"}, {"id": "seine", "text": "Seine"}],
        "correct_answer": "nile",
        "points": 10,
    }))
    essay = data_of(api_call(client, "POST", f"/exams/{exam['id']}/questions", json={
        "question_text": "Describe a delta.", "question_type": "short_answer", "points": 10,
    }))

    print("[3] Publishing fails until students are assigned")
    r = client.post(f"/exams/{exam['id']}/publish")
    assert r.status_code == 422
    assert "students" in error_of(r)["details"]["errors"]

    first = data_of(api_call(client, "POST", f"/exams/{exam['id']}/attempts", json={"student_id": 501}))
    second = data_of(api_call(client, "POST", f"/exams/{exam['id']}/attempts", json={"student_id": 502}))
    api_call(client, "POST", f"/exams/{exam['id']}/publish")
    api_call(client, "POST", f"/exams/{exam['id']}/start")
    print("[OK] Exam published and started")

    print("[4] Students answer and submit")
    for attempt, choice in ((first, "nile"), (second, "seine")):
        api_call(client, "POST", f"/attempts/{attempt['id']}/start")
        api_call(client, "PUT", f"/attempts/{attempt['id']}/answers/{mcq['id']}", json={"raw_value": choice})
        api_call(client, "PUT", f"/attempts/{attempt['id']}/answers/{essay['id']}", json={"raw_value": "Sediment."})
        api_call(client, "POST", f"/attempts/{attempt['id']}/submit")
    api_call(client, "POST", f"/attempts/{second['id']}/incidents", json={"count": 1}, expected_min=422, expected_max=423)

    print("[5] Closing the exam and grading")
    api_call(client, "POST", f"/exams/{exam['id']}/close")
    progress = []
    for attempt, grade in ((first, 8), (second, 9)):
        view = data_of(api_call(client, "GET", f"/grading/attempts/{attempt['id']}"))
        progress.append(view["progress"])
        answer = [a for a in view["answers"] if a["question_id"] == essay["id"]][0]
        graded = data_of(api_call(client, "PUT", f"/grading/answers/{answer['id']}", json={"grade": grade}))
        assert graded["progress"] >= view["progress"]
        assert graded["progress"] == 100.0
    assert progress == [50.0, 50.0]

    print("[6] Finalizing")
    first_result = data_of(api_call(client, "POST", f"/grading/attempts/{first['id']}/finalize"))
    second_result = data_of(api_call(client, "POST", f"/grading/attempts/{second['id']}/finalize"))
    assert (first_result["score"], first_result["letter_grade"], first_result["passed"]) == (18, "A", True)
    assert (second_result["score"], second_result["letter_grade"], second_result["passed"]) == (9, "F", False)

    again = data_of(api_call(client, "POST", f"/grading/attempts/{first['id']}/finalize"))
    assert again["id"] == first_result["id"]
    assert again["score"] == first_result["score"]

    api_call(client, "POST", f"/exams/{exam['id']}/complete")
    print("[OK] Exam completed")

    print("[7] Aggregating")
    averages = data_of(api_call(client, "GET", "/students/501/averages?academic_year=2025-2026"))
    [course_average] = averages["courses"]
    assert course_average["average"] == 18
    assert course_average["semester"] == 1
    assert averages["semesters"][0]["status"] == "passed"

    averages = data_of(api_call(client, "GET", "/students/502/averages?academic_year=2025-2026"))
    assert averages["courses"][0]["average"] == 9
    assert averages["courses"][0]["status"] == "pending"
    assert averages["semesters"][0]["status"] == "pending"
    print("[OK] Averages computed")
