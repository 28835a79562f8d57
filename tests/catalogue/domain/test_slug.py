from catalogue.shared.slug import slugify


class TestSlugify:
    def test_lowercases_and_hyphenates_words(self):
        assert slugify("Classic Black Tee") == "classic-black-tee"

    def test_strips_punctuation(self):
        assert slugify("Tee! (Black) & White?") == "tee-black-white"

    def test_collapses_repeated_separators(self):
        assert slugify("  Classic   --  Tee  ") == "classic-tee"

    def test_trims_leading_and_trailing_hyphens(self):
        assert slugify("-Classic Tee-") == "classic-tee"

    def test_non_ascii_only_name_gives_empty_slug(self):
        assert slugify("¡¿!!") == ""
