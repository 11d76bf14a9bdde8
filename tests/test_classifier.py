"""Tests for the response classification engine."""

import pytest

from ats_forms.services.classifier import (
    GeoMetadata,
    classify,
    extract_candidate_identity,
)
from ats_forms.services.form_schema import FileDescriptor, SkillRating
from tests.conftest import make_submitted


DESCRIPTOR = '{"fileName":"1712345678901_cv.pdf","originalName":"Ada CV.pdf","path":"/uploads/1712345678901_cv.pdf"}'


def _rows(items):
    return [(i.label, i.value) for i in items]


def _sample_application():
    return [
        make_submitted("Full name", "Ada Lovelace"),
        make_submitted("Email", "ada@example.com", "EMAIL"),
        make_submitted("Phone number", "+44 20 7946 0000", "PHONE"),
        make_submitted("Years of experience", "8", "NUMBER"),
        make_submitted("Current position", "Staff Engineer"),
        make_submitted("Highest qualification", "MSc"),
        make_submitted("Expected salary", "120k"),
        make_submitted("Current location", "London"),
        make_submitted("Notice period", "1 month"),
        make_submitted("Technical skills", '[{"skill":"Python","rating":5},{"skill":"Go","rating":0}]', "SKILLS"),
        make_submitted("LinkedIn profile", "https://linkedin.com/in/ada"),
        make_submitted("Why do you want to join?", "Mission"),
        make_submitted("Languages", ["English", "French"], "TAGS"),
        make_submitted("Resume", DESCRIPTOR, "FILE"),
    ]


# ---------------------------------------------------------------------------
# Whole profile
# ---------------------------------------------------------------------------

def test_classify_sample_application():
    profile = classify(_sample_application())

    assert _rows(profile.basic_info) == [
        ("Years of Experience", "8"),
        ("Current Position", "Staff Engineer"),
        ("Education", "MSc"),
        ("Expected Salary", "120k"),
        ("Location", "London"),
        ("Notice Period", "1 month"),
    ]
    assert [s.label for s in profile.skills] == ["Technical skills"]
    assert profile.skills[0].ratings == (SkillRating("Python", 5), SkillRating("Go", 0))
    assert ("User Provided Location", "London") in _rows(profile.contact)
    assert ("LinkedIn", "https://linkedin.com/in/ada") in _rows(profile.contact)
    assert [(q.question, q.answer) for q in profile.qa][-2:] == [
        ("Why do you want to join?", "Mission"),
        ("Languages", "English, French"),
    ]
    assert [f.display_name for f in profile.files] == ["Ada CV.pdf"]


def test_classify_is_idempotent():
    fields = _sample_application()
    geo = GeoMetadata(city="Berlin", country="Germany", ip="203.0.113.5", latitude="52.5", longitude="13.4")
    assert classify(fields, geo) == classify(fields, geo)
    assert classify(fields, geo).to_dict("http://x") == classify(fields, geo).to_dict("http://x")


def test_classify_empty_input():
    profile = classify([])
    assert profile.to_dict() == {"basicInfo": [], "skills": [], "contact": [], "qa": [], "files": []}


def test_classify_accepts_stored_dicts():
    profile = classify([{"id": "x", "label": "Notice period", "fieldType": "TEXT", "value": "2 weeks"}])
    assert _rows(profile.basic_info) == [("Notice Period", "2 weeks")]


# ---------------------------------------------------------------------------
# Basic info
# ---------------------------------------------------------------------------

def test_only_first_experience_field_is_captured():
    profile = classify([
        make_submitted("Total experience", "10 years"),
        make_submitted("Years of relevant experience", "6"),
    ])
    assert _rows(profile.basic_info) == [("Total Experience", "10 years")]


def test_team_leading_experience_is_not_a_second_experience_entry():
    profile = classify([
        make_submitted("Years of professional experience", "9"),
        make_submitted("Team leading experience", "3 years"),
    ])
    assert _rows(profile.basic_info) == [("Years of Experience", "9")]
    assert [q.question for q in profile.qa] == ["Years of professional experience", "Team leading experience"]


def test_fields_before_experience_are_still_categorised():
    profile = classify([
        make_submitted("Current role", "Lead"),
        make_submitted("Work experience", "5 years"),
    ])
    assert _rows(profile.basic_info) == [("Current Position", "Lead"), ("Work Experience", "5 years")]


def test_descriptive_experience_questions_are_not_basic_info():
    profile = classify([make_submitted("Describe your experience leading a team", "...")])
    assert profile.basic_info == ()
    assert [q.question for q in profile.qa] == ["Describe your experience leading a team"]


def test_location_rejects_emails_and_dev_values():
    profile = classify([
        make_submitted("Location", "ada@example.com"),
        make_submitted("City", "Development Environment"),
        make_submitted("Address", "localhost"),
    ])
    assert profile.basic_info == ()


def test_email_address_label_is_not_location():
    profile = classify([make_submitted("Email address", "ada@example.com", "EMAIL")])
    assert profile.basic_info == ()


# ---------------------------------------------------------------------------
# Skills
# ---------------------------------------------------------------------------

def test_skills_detected_by_label_and_json_shape():
    profile = classify([make_submitted("Skill matrix", '{"skill":"SQL","rating":3}')])
    assert profile.skills[0].ratings == (SkillRating("SQL", 3),)
    assert profile.qa == ()


def test_skills_detected_by_value_shape():
    profile = classify([make_submitted("Stack", '[{"skill":"Vue","rating":2}]')])
    assert profile.skills[0].label == "Stack"


def test_skills_with_unparseable_value_shows_raw_text():
    profile = classify([make_submitted("Skills", "Python and Go", "SKILLS")])
    assert profile.skills[0].ratings == (SkillRating("Python and Go", 0),)
    assert profile.skills[0].to_dict()["skills"][0]["display"] == "No rating provided"


def test_skills_detected_by_legacy_type_tag():
    profile = classify([
        make_submitted("Tools", "Docker"),
        make_submitted("Tools_fieldType", "SKILLS"),
    ])
    assert [s.label for s in profile.skills] == ["Tools"]
    assert profile.qa == ()


# ---------------------------------------------------------------------------
# Contact and metadata
# ---------------------------------------------------------------------------

def test_geo_rows_for_real_request():
    geo = GeoMetadata(city="Austin", state="Texas", country="US", ip="198.51.100.7",
                      latitude="30.26", longitude="-97.74")
    assert _rows(classify([], geo).contact) == [
        ("Location (IP-based)", "Austin, Texas, US"),
        ("IP Address", "198.51.100.7"),
        ("Coordinates", "30.26, -97.74"),
    ]


def test_geo_rows_for_local_request():
    geo = GeoMetadata(city="Local", country="Development", ip="127.0.0.1", latitude="0", longitude="0")
    assert _rows(classify([], geo).contact) == [
        ("Location (Dev Environment)", "Local, Development"),
        ("IP Address", "127.0.0.1 (localhost)"),
    ]


def test_only_first_user_location_is_reported():
    profile = classify([
        make_submitted("City", "Paris"),
        make_submitted("Country", "France"),
        make_submitted("Portfolio location", "https://ada.dev"),
    ])
    assert [r for r in _rows(profile.contact) if r[0] == "User Provided Location"] == [
        ("User Provided Location", "Paris"),
    ]


def test_portfolio_links_are_labelled():
    profile = classify([
        make_submitted("Portfolio links", ["https://github.com/ada", "https://ada.dev", ""], "TAGS"),
    ])
    assert _rows(profile.contact) == [
        ("GitHub", "https://github.com/ada"),
        ("Portfolio 2", "https://ada.dev"),
    ]


def test_github_scalar_value():
    profile = classify([make_submitted("GitHub", "https://github.com/ada", "URL")])
    assert _rows(profile.contact) == [("GitHub", "https://github.com/ada")]


def test_other_contact_rows():
    profile = classify([
        make_submitted("Time zone", "UTC+1"),
        make_submitted("Preferred contact method", "Email"),
        make_submitted("Do you need visa sponsorship?", "No"),
    ])
    assert [r[0] for r in profile.contact] == ["Timezone", "Preferred Contact", "Work Authorization"]


# ---------------------------------------------------------------------------
# Q&A and files
# ---------------------------------------------------------------------------

def test_identity_and_file_fields_are_not_questions():
    profile = classify(_sample_application())
    questions = [q.question for q in profile.qa]
    assert "Full name" not in questions
    assert "Email" not in questions
    assert "Phone number" not in questions
    assert "Resume" not in questions
    assert "Technical skills" not in questions


def test_blank_answers_are_skipped():
    profile = classify([make_submitted("Anything else?", "  "), make_submitted("Hobbies", [], "TAGS")])
    assert profile.qa == ()


def test_legacy_file_name_display():
    profile = classify([make_submitted("Resume", "1712345678901_resume.pdf")])
    link = profile.files[0]
    assert link.display_name == "resume.pdf"
    assert link.encoding == "legacy"
    assert link.to_dict("http://hr.local/")["downloadUrl"] == "http://hr.local/files/1712345678901_resume.pdf"


def test_file_without_usable_value():
    profile = classify([make_submitted("Attachment", "", "FILE")])
    link = profile.files[0]
    assert link.display_name == "File uploaded"
    assert link.to_dict()["downloadUrl"] is None


def test_file_descriptor_value_object():
    descriptor = FileDescriptor("1_a b.pdf", "a b.pdf", "/uploads/1_a b.pdf")
    profile = classify([make_submitted("Portfolio", descriptor, "FILE")])
    assert profile.files[0].download_path == "/files/1_a%20b.pdf"


# ---------------------------------------------------------------------------
# Candidate identity
# ---------------------------------------------------------------------------

def test_extract_candidate_identity():
    identity = extract_candidate_identity(_sample_application())
    assert identity.name == "Ada Lovelace"
    assert identity.email == "ada@example.com"
    assert identity.phone == "+44 20 7946 0000"
    assert identity.resume == FileDescriptor("1712345678901_cv.pdf", "Ada CV.pdf",
                                             "/uploads/1712345678901_cv.pdf")


def test_extract_candidate_identity_defaults():
    identity = extract_candidate_identity([make_submitted("Languages", ["Go"], "TAGS")])
    assert identity.name == "Anonymous"
    assert identity.email == ""
    assert identity.resume is None


@pytest.mark.parametrize("value,expected", [
    ('[{"skill":"Go","rating":4}]', [("Go", "4/5")]),
    ("not json", [("not json", "No rating provided")]),
    ('{"skill":"Rust","rating":5}', [("Rust", "5/5")]),
])
def test_skills_fallback_chain(value, expected):
    profile = classify([make_submitted("Skills", value, "SKILLS")])
    assert [(r.skill, r.rating_label) for r in profile.skills[0].ratings] == expected
