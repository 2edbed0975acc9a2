import pytest

from newsdigest.steps.deduplicate import is_near_duplicate, jaccard_similarity


def test_identical_texts():
    assert jaccard_similarity("the cat sat", "the cat sat") == 1.0
    assert is_near_duplicate("the cat sat", "the cat sat")


def test_word_order_and_case_do_not_matter():
    assert jaccard_similarity("Results Were Announced", "announced results were") == 1.0


def test_partial_overlap():
    # {a b c d} vs {a b c e}: 3 shared of 5 total
    assert jaccard_similarity("a b c d", "a b c e") == pytest.approx(0.6)
    assert not is_near_duplicate("a b c d", "a b c e")
    assert is_near_duplicate("a b c d", "a b c e", threshold=0.6)


def test_threshold_is_inclusive():
    # 8 shared of 10 total = 0.8
    a = "one two three four five six seven eight nine"
    b = "one two three four five six seven eight ten"
    assert jaccard_similarity(a, b) == pytest.approx(0.8)
    assert is_near_duplicate(a, b)


def test_empty_inputs():
    assert jaccard_similarity("", "") == 1.0
    assert is_near_duplicate("", "   ")
    assert jaccard_similarity("", "something here") == 0.0


@pytest.mark.parametrize("threshold", [-0.1, 1.5, None])
def test_threshold_out_of_range_fails_fast(threshold):
    with pytest.raises(ValueError):
        is_near_duplicate("a", "b", threshold=threshold)
