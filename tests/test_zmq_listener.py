from retarget_explorer.zmq.listener import BlockNotifier


class Recorder:
    def __init__(self, fail=False):
        self.hashes = []
        self.fail = fail

    async def __call__(self, block_hash):
        self.hashes.append(block_hash)
        if self.fail:
            raise RuntimeError("node unreachable")


async def test_hashblock_triggers_callback():
    rec = Recorder()
    notifier = BlockNotifier("tcp://127.0.0.1:29332", rec)
    await notifier.handle_message([b"hashblock", bytes.fromhex("ab" * 32), (7).to_bytes(4, "little")])
    assert rec.hashes == ["ab" * 32]


async def test_other_topics_and_malformed_messages_ignored():
    rec = Recorder()
    notifier = BlockNotifier("tcp://127.0.0.1:29332", rec)
    await notifier.handle_message([b"hashtx", b"\x00" * 32])
    await notifier.handle_message([b"hashblock"])
    assert rec.hashes == []


async def test_callback_errors_are_logged_not_raised(caplog):
    notifier = BlockNotifier("tcp://127.0.0.1:29332", Recorder(fail=True))
    await notifier.handle_message([b"hashblock", b"\x01" * 32])
    assert "Error refreshing after block" in caplog.text


async def test_sequence_gap_is_reported(caplog):
    notifier = BlockNotifier("tcp://127.0.0.1:29332", Recorder())
    await notifier.handle_message([b"hashblock", b"\x01" * 32, (1).to_bytes(4, "little")])
    await notifier.handle_message([b"hashblock", b"\x02" * 32, (4).to_bytes(4, "little")])
    assert "Missed block notifications (seq 1 -> 4)" in caplog.text


def test_not_running_until_started():
    notifier = BlockNotifier("tcp://127.0.0.1:29332", Recorder())
    assert not notifier.is_running
    assert "running=False" in repr(notifier)
