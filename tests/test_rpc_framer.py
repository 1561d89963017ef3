from caiide_memory.rpc.framer import LineFramer


def test_split_message_is_reassembled_across_feeds():
    framer = LineFramer()
    assert framer.feed(b"{") == []
    assert framer.pending_bytes == 1
    assert framer.feed(b'"a":1}\n') == ['{"a":1}']
    assert framer.pending_bytes == 0

    whole = LineFramer().feed(b'{"a":1}\n')
    assert whole == ['{"a":1}']


def test_multiple_messages_in_one_read_keep_order():
    framer = LineFramer()
    assert framer.feed(b'{"a":1}\n{"b":2}\n') == ['{"a":1}', '{"b":2}']


def test_trailing_partial_line_is_retained():
    framer = LineFramer()
    assert framer.feed(b'{"a":1}\n{"b"') == ['{"a":1}']
    assert framer.feed(b":2}\n") == ['{"b":2}']


def test_blank_and_whitespace_lines_are_dropped():
    framer = LineFramer()
    assert framer.feed(b"\n   \n\t\n{}\n\n") == ["{}"]


def test_crlf_terminators_are_stripped():
    framer = LineFramer()
    assert framer.feed(b'{"a":1}\r\n') == ['{"a":1}']


def test_multibyte_character_split_between_reads():
    framer = LineFramer()
    encoded = '{"t":"é"}\n'.encode("utf-8")
    cut = encoded.index(b"\xa9")
    assert framer.feed(encoded[:cut]) == []
    assert framer.feed(encoded[cut:]) == ['{"t":"é"}']


def test_flush_returns_unterminated_remainder_once():
    framer = LineFramer()
    framer.feed(b'{"tail":true}')
    assert framer.flush() == ['{"tail":true}']
    assert framer.flush() == []
    assert framer.pending_bytes == 0


def test_empty_feed_is_a_noop():
    framer = LineFramer()
    assert framer.feed(b"") == []
    assert framer.pending_bytes == 0


def test_malformed_lines_are_still_framed():
    framer = LineFramer()
    assert framer.feed(b"garbage\n{}\n") == ["garbage", "{}"]
