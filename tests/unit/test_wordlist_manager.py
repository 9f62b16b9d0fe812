"""
Unit tests for the wordlist producer.
"""

import asyncio

import pytest

from fuzz_hunter.core.exceptions import WordlistError
from fuzz_hunter.fuzzing.wordlist_manager import WordlistManager, strip_line_ending


class TestDescriptors:
    """Expansion of wordlist lines against extensions."""

    @pytest.mark.parametrize("lines, extensions", [
        (["a"], ""),
        (["a", "b", "c"], ".php"),
        (["a", "b", "c"], ".php,.html,.bak"),
        ([], ".php,.html"),
    ])
    def test_cardinality(self, make_config, lines, extensions):
        config = make_config(lines, extensions=extensions)
        manager = WordlistManager(config)

        with manager.open() as handle:
            descriptors = list(manager.iter_descriptors(handle))

        assert len(descriptors) == len(lines) * len(config.extensions)

    def test_line_order_per_extension(self, make_config):
        manager = WordlistManager(make_config(["one", "two", "three"], extensions=".php,.html"))

        with manager.open() as handle:
            descriptors = list(manager.iter_descriptors(handle))

        for extension in (".php", ".html"):
            payloads = [d.payload for d in descriptors if d.extension == extension]
            assert payloads == ["one", "two", "three"]

    def test_descriptor_fields(self, make_config):
        config = make_config(["admin"], method="POST", body="a=FUZZ", headers="X-A:1")
        manager = WordlistManager(config)

        with manager.open() as handle:
            (descriptor,) = manager.iter_descriptors(handle)

        assert descriptor.method == "POST"
        assert descriptor.url == "http://target.local"
        assert descriptor.headers == {"X-A": "1"}
        assert descriptor.body == "a=FUZZ"
        assert descriptor.extension == ""
        assert descriptor.payload == "admin"
        assert descriptor.retries == 0

    def test_crlf_line_endings(self, make_config, tmp_path):
        path = tmp_path / "crlf.txt"
        path.write_bytes(b"admin\r\nlogin\r\n")
        manager = WordlistManager(make_config(wordlist=path))

        with manager.open() as handle:
            payloads = [d.payload for d in manager.iter_descriptors(handle)]

        assert payloads == ["admin", "login"]

    def test_lone_carriage_return_stays_in_entry(self, make_config, tmp_path):
        path = tmp_path / "cr.txt"
        path.write_bytes(b"a\rb\r\nc\n")
        manager = WordlistManager(make_config(wordlist=path))

        with manager.open() as handle:
            payloads = [d.payload for d in manager.iter_descriptors(handle)]

        assert payloads == ["a\rb", "c"]
        assert manager.count_lines() == 2

    def test_undecodable_bytes_are_preserved(self, make_config, tmp_path):
        path = tmp_path / "latin1.txt"
        path.write_bytes(b"caf\xe9\nna\xefve\n")
        manager = WordlistManager(make_config(wordlist=path))

        with manager.open() as handle:
            payloads = [d.payload for d in manager.iter_descriptors(handle)]

        assert [p.encode("utf-8", "surrogateescape") for p in payloads] == [b"caf\xe9", b"na\xefve"]

    @pytest.mark.parametrize("line, expected", [
        ("admin\n", "admin"),
        ("admin\r\n", "admin"),
        ("admin\r\r\n", "admin\r"),
        ("admin", "admin"),
    ])
    def test_strip_line_ending(self, line, expected):
        assert strip_line_ending(line) == expected

    def test_count_lines(self, make_config):
        assert WordlistManager(make_config(["a", "b", "c"])).count_lines() == 3

    def test_unreadable_wordlist(self, make_config):
        config = make_config()
        config.wordlist.unlink()

        with pytest.raises(WordlistError, match="Unable to open wordlist"):
            WordlistManager(config).open()


class TestProduce:
    """The async producer."""

    @pytest.mark.asyncio
    async def test_produce_fills_queue_and_signals(self, make_config):
        manager = WordlistManager(make_config(["a", "b"], extensions=".php,.bak"))
        queue = asyncio.Queue()
        done = asyncio.Event()
        handle = manager.open()

        produced = await manager.produce(handle, queue, done)

        assert produced == 4
        assert queue.qsize() == 4
        assert done.is_set()
        assert handle.closed

    @pytest.mark.asyncio
    async def test_produce_blocks_on_full_queue(self, make_config):
        manager = WordlistManager(make_config(["a", "b", "c"]))
        queue = asyncio.Queue(maxsize=1)
        done = asyncio.Event()

        task = asyncio.create_task(manager.produce(manager.open(), queue, done))
        await asyncio.sleep(0.01)
        assert not done.is_set()

        payloads = []
        for _ in range(3):
            payloads.append((await queue.get()).payload)

        assert await task == 3
        assert payloads == ["a", "b", "c"]
        assert done.is_set()
