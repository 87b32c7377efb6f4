from kennel.reconciler import (image_sort_key, is_image_file, merge_new_images,
                               puppy_name_from_folder, sort_image_filenames)


def test_numbered_images_sort_by_number_not_text():
    names = ["image10.jpg", "image2.jpg", "image1.jpg"]
    assert sort_image_filenames(names) == ["image1.jpg", "image2.jpg", "image10.jpg"]


def test_unnumbered_files_come_after_numbered_ones():
    names = ["cover.jpg", "image3.png", "a.jpg", "image1.jpg"]
    assert sort_image_filenames(names) == ["image1.jpg", "image3.png", "a.jpg", "cover.jpg"]


def test_same_number_breaks_tie_by_filename():
    assert sort_image_filenames(["image1.png", "image1.jpg"]) == ["image1.jpg", "image1.png"]


def test_sort_key_shapes():
    assert image_sort_key("image7.webp") == (0, 7, "image7.webp")
    assert image_sort_key("IMG_0001.jpg") == (1, 0, "IMG_0001.jpg")


def test_image_extensions_are_case_insensitive():
    assert is_image_file("image1.JPG")
    assert is_image_file("photo.WebP")
    assert not is_image_file("notes.txt")
    assert not is_image_file("image1.jpg.bak")


def test_puppy_name_capitalizes_only_first_letter():
    assert puppy_name_from_folder("gray") == "Gray"
    assert puppy_name_from_folder("mcQueen") == "McQueen"
    assert puppy_name_from_folder("") == ""


def test_merge_returns_only_new_paths_in_candidate_order():
    existing = ["/dogs/gray/image1.jpg", "/dogs/gray/image5.jpg"]
    candidates = ["/dogs/gray/image1.jpg", "/dogs/gray/image2.jpg", "/dogs/gray/image3.jpg"]
    assert merge_new_images(existing, candidates) == ["/dogs/gray/image2.jpg", "/dogs/gray/image3.jpg"]


def test_merge_never_returns_a_path_twice():
    assert merge_new_images([], ["/a", "/b", "/a"]) == ["/a", "/b"]
