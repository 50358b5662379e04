from itertools import combinations

from concierge.models.profile import Profile
from concierge.services.priority import classify_priority, priority_label
from concierge.services.progress import compute_pointer, get_questions


def test_priority_groups():
    assert classify_priority("lowest rate please") == "rate"
    assert classify_priority("need to close in 2 weeks") == "speed"
    assert classify_priority("minimal paperwork") == "documents"
    assert classify_priority("max leverage") == "ltv"


def test_priority_first_match_wins():
    # Both ltv and speed terms appear; ltv is listed first.
    assert classify_priority("max leverage and a fast close") == "ltv"
    assert classify_priority("best APR, fast close, no doc") == "rate"


def test_priority_word_boundaries():
    assert classify_priority("I am interested in a condo") is None
    assert classify_priority("") is None


def test_priority_chinese():
    assert classify_priority("希望利率低一些") == "rate"
    assert classify_priority("希望放款快") == "speed"
    assert classify_priority("材料越少越好") == "documents"


def test_priority_labels():
    assert priority_label("rate") == "Locking the lowest rate"
    assert priority_label("ltv", "zh") == "最大化贷款成数"
    assert priority_label(None) == "Balanced factors"


def test_pointer_thresholds():
    questions = get_questions("en")

    empty = compute_pointer(Profile(), questions)
    assert empty.pointer == 0
    assert empty.pending_question == questions[0]
    assert not empty.recap_due

    assert compute_pointer(Profile(location="Austin"), questions).pointer == 1
    # Timeline alone jumps past the unanswered location question.
    assert compute_pointer(Profile(timeline="next month"), questions).pointer == 2

    done = compute_pointer(Profile(priority="rate"), questions)
    assert done.pointer == 3
    assert done.complete
    assert done.recap_due
    assert done.pending_question is None


def test_recap_only_once():
    questions = get_questions("en")
    profile = Profile(location="Austin", timeline="next month", priority="rate")

    assert compute_pointer(profile, questions, already_recapped=False).recap_due
    again = compute_pointer(profile, questions, already_recapped=True)
    assert not again.recap_due
    assert again.complete


def test_pointer_monotonic_under_accumulation():
    questions = get_questions("en")
    values = {"location": "Austin", "timeline": "next month", "priority": "rate", "credit": "700"}
    subsets = [dict(combo) for size in range(len(values) + 1) for combo in combinations(values.items(), size)]

    for small in subsets:
        for large in subsets:
            if set(small) <= set(large):
                assert (
                    compute_pointer(Profile(**small), questions).pointer
                    <= compute_pointer(Profile(**large), questions).pointer
                )


def test_question_sets():
    assert len(get_questions("zh")) == 3
    assert get_questions("fr") == get_questions("en")
