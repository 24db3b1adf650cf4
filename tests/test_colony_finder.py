import csv

import cv2
import numpy as np

from libcolonycount.classifier import save_model
from libcolonycount.colony_finder import ColonyFinder, within_tolerance
from libcolonycount.config import CircleFinderConfig, CountingConfig


def make_batch(tmp_path, plate_image, plate_model):
    images = tmp_path / "images"
    images.mkdir()
    cv2.imwrite(str(images / "dish_0.png"), plate_image)
    cv2.imwrite(str(images / "dish_1.png"), np.fliplr(plate_image).copy())
    cv2.imwrite(str(images / "empty.png"), np.full((480, 640, 3), 90, dtype=np.uint8))
    (images / "notes.txt").write_text("not an image")

    model_path = tmp_path / "model.npz"
    save_model(model_path, plate_model)

    config = CountingConfig(circle=CircleFinderConfig(seed=0))
    return ColonyFinder(images, tmp_path / "output" / "counts.csv", model_path, config)


def test_colony_finder(tmp_path, plate_image, plate_model):
    cf = make_batch(tmp_path, plate_image, plate_model)
    cf.run_full_proc()

    assert cf.get_counts() == {
        "dish_0": {1: 3, 2: 2},
        "dish_1": {1: 3, 2: 2},
        "empty": {},
    }
    assert not cf.results["empty"].plate_found

    with open(tmp_path / "output" / "counts.csv", newline="") as infile:
        rows = list(csv.reader(infile))
    assert rows == [
        ["image", "plate_found", "red", "blue"],
        ["dish_0", "True", "3", "2"],
        ["dish_1", "True", "3", "2"],
        ["empty", "False", "", ""],
    ]


def test_annotate_images(tmp_path, plate_image, plate_model):
    cf = make_batch(tmp_path, plate_image, plate_model)
    cf.run_full_proc()

    images = cf.get_annot_images()
    assert sorted(images) == ["dish_0", "dish_1"]
    assert images["dish_0"].shape == plate_image.shape
    # colony fill color drawn over the first red colony
    assert images["dish_0"][260, 250].tolist() == [128, 128, 255]

    cf.save_annotated_images(tmp_path / "annotated")
    assert sorted(p.name for p in (tmp_path / "annotated").iterdir()) == ["dish_0.jpg", "dish_1.jpg"]


def test_evaluate_counts(tmp_path, plate_image, plate_model):
    cf = make_batch(tmp_path, plate_image, plate_model)
    cf.run_full_proc()

    evaluation, total_error = cf.evaluate_counts(
        {"dish_0": (3, 2), "dish_1": (-1, 4), "empty": (0, 0), "missing": (1, 1)}
    )

    assert sorted(evaluation) == ["dish_0", "dish_1", "empty"]
    assert evaluation["dish_0"] == {
        "red": 3,
        "blue": 2,
        "error": 0.0,
        "red_ok": True,
        "blue_ok": True,
        "within_tolerance": True,
    }
    # red not hand counted, blue half of what was expected
    assert evaluation["dish_1"]["error"] == -50.0
    assert evaluation["dish_1"]["red_ok"]
    assert not evaluation["dish_1"]["blue_ok"]
    assert not evaluation["dish_1"]["within_tolerance"]
    assert evaluation["empty"]["error"] == 0.0
    assert evaluation["empty"]["within_tolerance"]
    assert total_error == 50.0

    evaluation, total_error = cf.evaluate_counts({"dish_0": (0, 0)})
    assert evaluation["dish_0"]["error"] == 100.0
    assert not evaluation["dish_0"]["red_ok"]
    assert not evaluation["dish_0"]["blue_ok"]
    assert total_error == 100.0


def test_within_tolerance():
    assert within_tolerance(12, 10, 0.2)
    assert within_tolerance(8, 10, 0.2)
    assert not within_tolerance(13, 10, 0.2)
    assert not within_tolerance(7, 10, 0.2)
    assert within_tolerance(0, 0, 0.2)
    assert not within_tolerance(1, 0, 0.2)
