from src.domain.splits import compute_split, split_instruction


def test_platform_takes_ten_percent():
    split = compute_split(15000)
    assert split.admin_split == 1500
    assert split.vendor_split == 13500


def test_split_adds_up_for_odd_amounts():
    split = compute_split(99.99)
    assert split.admin_split == 10.0
    assert round(split.admin_split + split.vendor_split, 2) == 99.99


def test_split_instruction_lists_admin_then_vendor():
    instruction = split_instruction("admin-sub", "vendor-sub")
    assert instruction == {
        "type": "percentage",
        "subaccounts": [
            {"id": "admin-sub", "share": 10},
            {"id": "vendor-sub", "share": 90},
        ],
    }
