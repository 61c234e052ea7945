import wad.auth
import wad.conf


def test_sign():
    authorization = wad.auth.Authorization(wad.conf.Credentials("id", "key"))
    message = "The quick brown fox jumps over the lazy dog"

    # Well-known HMAC-SHA1 vector, base64-encoded
    assert authorization.sign(message) == "3nybhbi3iqa8ino29wqQcBydtNk="
    assert authorization.sign(message.encode()) == "3nybhbi3iqa8ino29wqQcBydtNk="
    assert authorization.sign(message) == authorization.sign(message)


def test_header():
    authorization = wad.auth.Authorization(wad.conf.Credentials("AKIDEXAMPLE", "key"))
    message = "The quick brown fox jumps over the lazy dog"
    assert authorization.header(message) == "AWS AKIDEXAMPLE:3nybhbi3iqa8ino29wqQcBydtNk="


def test_sign_depends_on_key():
    message = "GET\n\n\nT\n/bucket/key"
    first = wad.auth.Authorization(wad.conf.Credentials("id", "one"))
    second = wad.auth.Authorization(wad.conf.Credentials("id", "two"))
    assert first.sign(message) != second.sign(message)
    assert "\n" not in first.sign(message)
