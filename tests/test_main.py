import unittest

from advisor.main import app


class TestMain(unittest.TestCase):
    def test_app_metadata(self):
        self.assertEqual(app.title, "Activity Advisor")
        paths = {route.path for route in app.routes}
        self.assertIn("/health", paths)
        self.assertIn("/v1/suggestions", paths)
        self.assertIn("/v1/agricultural", paths)


if __name__ == "__main__":
    unittest.main()
