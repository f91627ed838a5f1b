import pytest

from shorturl_app.analytics.device import is_social_media_bot, parse_device_type, parse_os

IPAD = "Mozilla/5.0 (iPad; CPU OS 15_0 like Mac OS X) AppleWebKit/605.1.15 (KHTML, like Gecko) Mobile/15E148"
IPHONE = "Mozilla/5.0 (iPhone; CPU iPhone OS 16_6 like Mac OS X) AppleWebKit/605.1.15 Mobile/15E148"
IPOD = "Mozilla/5.0 (iPod touch; CPU OS 12_5 like Mac OS X) AppleWebKit/605.1.15"
PIXEL = "Mozilla/5.0 (Linux; Android 13; Pixel 7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/116.0 Mobile Safari/537.36"
GALAXY_TAB = "Mozilla/5.0 (Linux; Android 12.1; SM-X700) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/116.0 Safari/537.36"
KINDLE = "Mozilla/5.0 (X11; U; Linux armv7l like Android; en-us) AppleWebKit/531.2+ Kindle/3.0+"
MAC = "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0"
WIN10 = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 Chrome/120.0 Safari/537.36"
WIN7 = "Mozilla/5.0 (Windows NT 6.1; WOW64; Trident/7.0; rv:11.0) like Gecko"
LINUX = "Mozilla/5.0 (X11; Linux x86_64; rv:109.0) Gecko/20100101 Firefox/115.0"
CHROMEBOOK = "Mozilla/5.0 (X11; CrOS x86_64 14541.0.0) AppleWebKit/537.36 Chrome/116.0"
BLACKBERRY = "BlackBerry9700/5.0.0.351 Profile/MIDP-2.1 Configuration/CLDC-1.1"


class TestParseDeviceType:

    @pytest.mark.parametrize("user_agent, expected", [
        (IPAD, "iPad"),
        (IPHONE, "iPhone"),
        (IPOD, "iPod"),
        (PIXEL, "Android phone"),
        (GALAXY_TAB, "Android tablet"),
        (MAC, "Mac"),
        (WIN10, "Windows PC"),
        (LINUX, "Linux"),
        (CHROMEBOOK, "Chrome OS"),
        (BLACKBERRY, "other phone"),
        ("curl/8.4.0", "other computer"),
    ])
    def test_labels(self, user_agent, expected):
        assert parse_device_type(user_agent) == expected

    def test_empty_is_unknown(self):
        assert parse_device_type("") == "unknown"
        assert parse_device_type(None) == "unknown"

    def test_ipad_wins_over_mac(self):
        """iPad UAs mention "Mac OS X" too"""
        assert parse_device_type(IPAD) == "iPad"

    def test_kindle_is_android_tablet_when_it_says_android(self):
        # "android" with no "mobile" marker is checked before the generic tablet rule
        assert parse_device_type(KINDLE) == "Android tablet"

    def test_generic_tablet(self):
        assert parse_device_type("Mozilla/5.0 (PlayBook; U; RIM Tablet OS 2.1.0)") == "tablet"

    def test_case_insensitive(self):
        assert parse_device_type(IPHONE.upper()) == "iPhone"

    def test_is_pure(self):
        assert parse_device_type(PIXEL) == parse_device_type(PIXEL)
        assert parse_os(PIXEL) == parse_os(PIXEL)


class TestParseOS:

    @pytest.mark.parametrize("user_agent, expected", [
        (IPAD, "iOS 15.0"),
        (IPHONE, "iOS 16.6"),
        (PIXEL, "Android 13"),
        (GALAXY_TAB, "Android 12.1"),
        (MAC, "macOS 10.15.7"),
        ("Mozilla/5.0 (Macintosh; Intel Mac OS X 14.1) Safari/605.1.15", "macOS 14.1"),
        ("Mozilla/5.0 (Macintosh; macOS) Firefox/120.0", "macOS"),
        (WIN10, "Windows 10/11"),
        ("Mozilla/5.0 (Windows NT 6.3; Win64; x64)", "Windows 8.1"),
        ("Mozilla/5.0 (Windows NT 6.2; Win64; x64)", "Windows 8"),
        (WIN7, "Windows 7"),
        ("Mozilla/4.0 (compatible; MSIE 6.0; Windows NT 5.1)", "Windows"),
        (LINUX, "Linux"),
        (CHROMEBOOK, "Chrome OS"),
        ("curl/8.4.0", "other"),
        ("", "other"),
    ])
    def test_labels(self, user_agent, expected):
        assert parse_os(user_agent) == expected

    def test_ios_without_version(self):
        assert parse_os("Something iPhone something") == "iOS"

    def test_android_without_version(self):
        assert parse_os("Mozilla/5.0 (Linux; Android; K) Mobile") == "Android"


class TestSocialMediaBot:

    @pytest.mark.parametrize("user_agent", [
        "facebookexternalhit/1.1 (+http://www.facebook.com/externalhit_uatext.php)",
        "Facebot",
        "Twitterbot/1.0",
        "LinkedInBot/1.0 (compatible; Mozilla/5.0; Apache-HttpClient +http://www.linkedin.com)",
        "WhatsApp/2.23.20.0",
        "TelegramBot (like TwitterBot)",
        "Slackbot-LinkExpanding 1.0 (+https://api.slack.com/robots)",
        "Mozilla/5.0 (compatible; Discordbot/2.0; +https://discordapp.com)",
    ])
    def test_crawlers(self, user_agent):
        assert is_social_media_bot(user_agent)

    @pytest.mark.parametrize("user_agent", [IPHONE, WIN10, "Googlebot/2.1", "", None])
    def test_not_crawlers(self, user_agent):
        assert not is_social_media_bot(user_agent)
