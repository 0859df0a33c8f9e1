import itertools

import pytest

from tusbucket.partsize import calc_optimal_part_size

MAX_PART_SIZE = 5 * 1024 * 1024 * 1024
MIN_PART_SIZE = 5 * 1024 * 1024
PREFERRED_PART_SIZE = 50 * 1024 * 1024
MAX_MULTIPART_PARTS = 10000
MAX_OBJECT_SIZE = 5 * 1024 * 1024 * 1024 * 1024


def assert_calculated_part_size(size, min_part, max_part, preferred, max_parts):
    optimal = calc_optimal_part_size(size, preferred, max_part, max_parts)
    equal_parts = size // optimal
    last_part = size % optimal

    assert not optimal < min_part, size
    assert not optimal > max_part, size
    assert not (last_part == 0 and equal_parts > max_parts), size
    assert not (last_part > 0 and equal_parts > max_parts - 1), size
    assert not last_part > max_part, size
    assert not last_part > optimal, size
    assert size <= optimal * max_parts, size


def _default_cases():
    highest = MAX_OBJECT_SIZE // MAX_MULTIPART_PARTS
    if MAX_OBJECT_SIZE % MAX_MULTIPART_PARTS > 0:
        highest += 1
    remainder = MAX_OBJECT_SIZE % highest
    parts = MAX_MULTIPART_PARTS
    centres = [
        PREFERRED_PART_SIZE,
        MIN_PART_SIZE,
        MIN_PART_SIZE * (parts - 1),
        MIN_PART_SIZE * parts,
        MIN_PART_SIZE * (parts + 1),
        (highest - 1) * parts,
        highest * (parts - 1),
        highest * (parts - 1) + remainder,
        MAX_OBJECT_SIZE,
        (MAX_OBJECT_SIZE // parts) * (parts - 1),
        MAX_PART_SIZE * (parts - 1),
    ]
    cases = [0, 1]
    for centre in centres:
        cases.extend([centre - 1, centre, centre + 1])
    cases.extend([MAX_PART_SIZE * parts - 1, MAX_PART_SIZE * parts])
    return cases


@pytest.mark.parametrize("size", _default_cases())
def test_calc_optimal_part_size_defaults(size):
    assert MAX_OBJECT_SIZE <= MAX_PART_SIZE * MAX_MULTIPART_PARTS
    assert_calculated_part_size(
        size, MIN_PART_SIZE, MAX_PART_SIZE, PREFERRED_PART_SIZE, MAX_MULTIPART_PARTS
    )


def test_small_upload_uses_preferred_size():
    assert calc_optimal_part_size(0, PREFERRED_PART_SIZE, MAX_PART_SIZE, MAX_MULTIPART_PARTS) == PREFERRED_PART_SIZE
    assert calc_optimal_part_size(1, PREFERRED_PART_SIZE, MAX_PART_SIZE, MAX_MULTIPART_PARTS) == PREFERRED_PART_SIZE


def test_calc_optimal_part_size_many_upload_sizes():
    min_part = 5
    max_part = 5 * 1024
    preferred = 10
    max_parts = 1000
    max_object = max_part * max_parts
    sizes = itertools.chain(
        range(0, 20001),
        range(20001, max_object + 1, 1009),
        range(max_object - 2000, max_object + 1),
    )
    for size in sizes:
        assert_calculated_part_size(size, min_part, max_part, preferred, max_parts)


def test_calc_optimal_part_size_exceeding_max_part_size():
    size = MAX_PART_SIZE * MAX_MULTIPART_PARTS + 1
    with pytest.raises(ValueError) as info:
        calc_optimal_part_size(size, PREFERRED_PART_SIZE, MAX_PART_SIZE, MAX_MULTIPART_PARTS)
    message = str(info.value)
    assert f"to upload {size} bytes" in message
    assert f"must exceed MaxPartSize {MAX_PART_SIZE}" in message