"""Tests for the in-memory mailing list."""

import threading

from unsubscribe_service.services.mailing_list import MailingList


class TestMailingList:
    def test_seeded_from_iterable(self) -> None:
        mailing_list = MailingList(["jane.doe@gmail.com", "john.smith@gmail.com"])
        assert len(mailing_list) == 2
        assert mailing_list.contains("jane.doe@gmail.com")
        assert "john.smith@gmail.com" in mailing_list

    def test_duplicates_collapse(self) -> None:
        assert len(MailingList(["jane.doe@gmail.com", "jane.doe@gmail.com"])) == 1

    def test_remove_present_then_absent(self) -> None:
        mailing_list = MailingList(["jane.doe@gmail.com"])
        assert mailing_list.remove("jane.doe@gmail.com") is True
        assert mailing_list.remove("jane.doe@gmail.com") is False
        assert not mailing_list.contains("jane.doe@gmail.com")

    def test_snapshot_is_detached(self) -> None:
        mailing_list = MailingList(["jane.doe@gmail.com"])
        snapshot = mailing_list.snapshot()
        mailing_list.remove("jane.doe@gmail.com")
        assert "jane.doe@gmail.com" in snapshot
        assert isinstance(snapshot, frozenset)

    def test_non_string_membership_is_false(self) -> None:
        assert 42 not in MailingList(["jane.doe@gmail.com"])

    def test_concurrent_removals_succeed_once(self) -> None:
        mailing_list = MailingList(["jane.doe@gmail.com"])
        results: list[bool] = []
        barrier = threading.Barrier(6)

        def remove() -> None:
            barrier.wait()
            results.append(mailing_list.remove("jane.doe@gmail.com"))

        threads = [threading.Thread(target=remove) for _ in range(6)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert results.count(True) == 1
