import uuid

import pytest

from services.risk_assessment.catalog import (
    CatalogLoader,
    deduplicate,
    is_well_formed_id,
    normalize_question_text,
    select_catalog_questions,
)
from services.risk_assessment.defaults import default_question_id
from services.risk_assessment.models import QuestionType


def qid(n: int) -> str:
    return str(uuid.UUID(int=n))


def test_identifier_check():
    assert is_well_formed_id(qid(7))
    assert is_well_formed_id(str(uuid.uuid4()).upper())
    assert not is_well_formed_id("familyGlaucoma")
    assert not is_well_formed_id("")
    assert not is_well_formed_id(None)


def test_text_normalization_ignores_case_and_spacing():
    assert normalize_question_text("  Family   History ") == normalize_question_text("family history")


def test_admin_authored_duplicate_survives(make_question):
    # Two active "Age" questions, one written by an administrator.
    unattributed = make_question(qid(1), "Age", age_minutes=0)
    admin = make_question(qid(2), "Age", created_by="admin-user", age_minutes=60)

    catalog = select_catalog_questions([unattributed, admin])

    assert [q.id for q in catalog] == [qid(2)]


def test_newest_duplicate_survives_when_authorship_ties(make_question):
    older = make_question(qid(1), "Race", created_by="a", age_minutes=30)
    newer = make_question(qid(2), " race ", created_by="b", age_minutes=5)
    oldest = make_question(qid(3), "RACE", created_by="c", age_minutes=90)

    survivors = deduplicate([older, newer, oldest])

    assert [q.id for q in survivors] == [qid(2)]


def test_first_encountered_duplicate_survives_on_full_tie(make_question):
    first = make_question(qid(1), "Race")
    second = make_question(qid(2), "Race")

    assert [q.id for q in deduplicate([first, second])] == [qid(1)]


def test_exactly_one_survivor_per_text(make_question):
    rows = [make_question(qid(i), "Vertical C:D ratio", age_minutes=i) for i in range(1, 6)]
    rows.append(make_question(qid(10), "Age"))

    catalog = select_catalog_questions(rows)

    texts = [normalize_question_text(q.text) for q in catalog]
    assert sorted(texts) == ["age", "vertical c:d ratio"]


def test_malformed_and_inactive_rows_are_filtered(make_question):
    rows = [
        make_question("legacy-race", "Race"),
        make_question(qid(1), "Age"),
        make_question(qid(2), "Retired question", is_active=False),
    ]

    assert [q.id for q in select_catalog_questions(rows)] == [qid(1)]


def test_sorted_by_category_order_then_newest(make_question):
    rows = [
        make_question(qid(1), "B", category="patient_info", display_order=1),
        make_question(qid(2), "A", category="medical_history", display_order=2),
        make_question(qid(3), "C", category="medical_history", display_order=1, age_minutes=10),
        make_question(qid(4), "D", category="medical_history", display_order=1, age_minutes=1),
    ]

    assert [q.id for q in select_catalog_questions(rows)] == [qid(4), qid(3), qid(2), qid(1)]


def test_name_fields_are_forced_to_free_text(make_question):
    rows = [make_question(qid(1), "Patient First Name"), make_question(qid(2), "Last name")]

    catalog = select_catalog_questions(rows)

    assert all(q.question_type == QuestionType.text for q in catalog)


@pytest.mark.anyio
async def test_options_attached_only_to_select_questions(fake_store, make_question, make_option):
    select_q = make_question(qid(1), "Family history of glaucoma", display_order=1)
    number_q = make_question(qid(2), "IOP reading", question_type=QuestionType.number, display_order=2)
    empty_q = make_question(qid(3), "Any other history?", display_order=3)
    store = fake_store(
        questions=[select_q, number_q, empty_q],
        options=[
            make_option(qid(1), "no", 0, display_order=2),
            make_option(qid(1), "yes", 2, display_order=1),
            make_option(qid(2), "22", 2),
        ],
    )

    resolved = await CatalogLoader(store).load()

    assert resolved.source == "questions_with_options"
    assert not resolved.degraded
    by_id = {q.id: q for q in resolved.value}
    assert [o.value for o in by_id[qid(1)].options] == ["yes", "no"]
    assert by_id[qid(2)].options == ()
    # A select question without options stays in the catalog.
    assert qid(3) in by_id and by_id[qid(3)].options == ()


@pytest.mark.anyio
async def test_falls_back_to_table_scan_with_batched_option_lookup(fake_store, make_question, make_option):
    store = fake_store(
        questions=[make_question(qid(1), "Race"), make_question(qid(2), "race")],
        options=[make_option(qid(1), "black", 2), make_option(qid(2), "black", 5)],
        failing={"list_questions_with_options"},
    )

    resolved = await CatalogLoader(store).load()

    assert resolved.source == "question_table_scan"
    assert store.calls == ["list_questions_with_options", "list_active_questions", "list_options"]
    assert len(resolved.value) == 1
    assert resolved.value[0].options[0].question_id == resolved.value[0].id


@pytest.mark.anyio
async def test_built_in_questionnaire_when_store_is_down(fake_store):
    resolved = await CatalogLoader(fake_store(failing={"*"})).load()

    assert resolved.degraded
    assert resolved.source == "built_in_questionnaire"
    ids = {q.id for q in resolved.value}
    assert default_question_id("familyGlaucoma") in ids
    assert all(is_well_formed_id(q.id) for q in resolved.value)


@pytest.mark.anyio
async def test_empty_store_uses_built_in_questionnaire(fake_store):
    resolved = await CatalogLoader(fake_store()).load()

    assert resolved.source == "built_in_questionnaire"
