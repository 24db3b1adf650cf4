from pathlib import Path
import logging
import csv
import os
import cv2
from libcolonycount import constants as CONSTANTS
from libcolonycount.classifier import load_model
from libcolonycount.colony_counter import draw_colonies
from libcolonycount.errors import PlateNotFoundError
from libcolonycount.pipeline import ColonyCounter, CountResult, load_image

IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".bmp", ".tif", ".tiff")


class ColonyFinder:
    def __init__(
        self,
        raw_image_path,
        csv_out_path,
        model_path,
        config=None,
    ):
        self.raw_image_path = raw_image_path
        self.csv_out_path = csv_out_path

        self.counter = ColonyCounter(load_model(model_path), config)

        self.results = {}
        """
        CountResult per image name (file name without extension). Filled by count_images()
        """

        logging.basicConfig(
            format="%(asctime)s: %(message)s",
            level=logging.INFO,
            datefmt="%H:%M:%S",
        )

    def run_full_proc(self):
        self.results = self.count_images()
        self.write_counts_csv()

    def get_annot_images(self):
        return self.annotate_images()

    def get_counts(self):
        """
        returns {image name: {label: count}}. Images without a plate map to an empty dict.
        """
        return {name: result.counts_by_label for name, result in self.results.items()}

    def image_paths(self):
        images_path = Path(self.raw_image_path).resolve()
        paths = [
            images_path / image
            for image in sorted(os.listdir(images_path))
            if os.path.splitext(image)[1].lower() in IMAGE_EXTENSIONS
        ]
        if len(paths) == 0:
            logging.error("!!!!!!!!!!!!!!!!!!!!! No images found in %s !!!!!!!!!!!!!!!!!!!!", images_path)
        return paths

    def count_images(self):
        """
        Counts colonies in every image in raw_image_path.

        An image where no plate is found is logged and recorded with plate_found=False, the rest of
        the batch carries on. Unreadable images stop the batch.
        """
        results = {}

        for image_path in self.image_paths():
            base_image_name = os.path.splitext(os.path.basename(image_path))[0]
            logging.info("Processing image %s", base_image_name)

            image = load_image(image_path)
            try:
                result = self.counter.count(image)
            except PlateNotFoundError:
                logging.error("No plate found in %s, skipping", base_image_name)
                result = CountResult(counts_by_label={}, plate_found=False)

            results[base_image_name] = result
            logging.info(
                "%s: RED..........%s | BLUE..........%s",
                base_image_name,
                result.red,
                result.blue,
            )

        logging.info("Counting complete. %s images processed", len(results))
        return results

    def write_counts_csv(self):
        """
        writes one row per image to csv_out_path:

            image,plate_found,red,blue

        red and blue are left empty for images where no plate was found
        """
        csv_path = Path(self.csv_out_path)
        if not csv_path.parent.exists():
            logging.info("Creating CSV directory: %s", csv_path.parent)
            os.makedirs(csv_path.parent)

        logging.info("Writing counts to %s...", csv_path)
        with open(csv_path, "w", newline="") as outfile:
            writer = csv.writer(outfile)
            writer.writerow(["image", "plate_found", "red", "blue"])

            for image_name, result in self.results.items():
                if result.plate_found:
                    writer.writerow([image_name, True, result.red, result.blue])
                else:
                    writer.writerow([image_name, False, "", ""])

        logging.info("CSV writing complete")

    def annotate_images(self):
        """
        takes the images in the image input path, and:
        - draws the plate circle that was found
        - fills and outlines every counted colony in its label's color
        - writes the counts in the top left corner

        - **Returns** a dict of annotated images, with the image name as the key, and the annotated image as the value
        """
        logging.info("Creating annotated images...")
        annotated_images = {}

        for image_path in self.image_paths():
            image_name = os.path.splitext(os.path.basename(image_path))[0]
            result = self.results.get(image_name)
            if result is None or not result.plate_found:
                logging.info("No plate for %s, not annotating", image_name)
                continue

            image = load_image(image_path)
            rect = result.rect

            # colonies are found in crop coordinates
            crop = image[rect.y : rect.y + rect.height, rect.x : rect.x + rect.width]
            crop[:] = draw_colonies(crop.shape, result.regions_by_label, crop)

            center = (int(result.plate.center.x), int(result.plate.center.y))
            cv2.circle(image, center, int(result.plate.radius), (0, 255, 0), 3)

            cv2.rectangle(image, (10, 10), (420, 60), (0, 0, 0), -1)
            cv2.putText(
                image,
                "RED %d  BLUE %d" % (result.red, result.blue),
                (20, 48),
                cv2.FONT_HERSHEY_SIMPLEX, 1,
                (255, 255, 255),
                3,
            )

            annotated_images[image_name] = image
            logging.info(
                "Annotations for %s with %s colonies complete",
                image_name,
                sum(result.counts_by_label.values()),
            )

        logging.info("Annotated image creation complete")
        return annotated_images

    def save_annotated_images(self, out_path):
        """
        writes annotate_images() output to out_path as <image name>.jpg
        """
        if not os.path.exists(out_path):
            logging.info("Creating annotated image directory: %s", out_path)
            os.makedirs(out_path)

        for image_name, image in self.annotate_images().items():
            save_path = os.path.join(out_path, image_name + ".jpg")
            logging.info("Saving annotated image to %s", save_path)
            if not cv2.imwrite(save_path, image):
                logging.critical("Error saving annotated image to: %s", save_path)
                raise RuntimeError("Error saving annotated image to: %s" % save_path)

    def evaluate_counts(self, expected, tolerance=CONSTANTS.COUNT_TOLERANCE):
        """
        Checks counts from count_images() against hand counts.

        expected maps image name to (red, blue). A negative red means red wasn't hand counted, so
        it is not checked. The error is the blue count's percentage error, or 0/100 when no blue
        colonies were expected (100 if any were counted).

        - **Returns** ({image name: {"red", "blue", "error", "red_ok", "blue_ok", "within_tolerance"}}, total absolute error)
        """
        evaluation = {}
        total_error = 0.0

        for image_name, (red_expected, blue_expected) in expected.items():
            result = self.results.get(image_name)
            if result is None:
                logging.error("No counts for %s, not evaluated", image_name)
                continue

            red, blue = result.red, result.blue
            if blue_expected == 0:
                error = 0.0 if blue == 0 else 100.0
            else:
                error = (blue / blue_expected - 1) * 100

            red_ok = red_expected < 0 or within_tolerance(red, red_expected, tolerance)
            blue_ok = within_tolerance(blue, blue_expected, tolerance)
            logging.info(
                "%s: Red=%3d vs %3d     Blue=%3d vs %3d    Error: %5.1f",
                image_name,
                red,
                red_expected,
                blue,
                blue_expected,
                error,
            )
            if not red_ok:
                logging.warning("%s: RED NOT WITHIN TOLERANCES", image_name)
            if not blue_ok:
                logging.warning("%s: BLUE NOT WITHIN TOLERANCES", image_name)

            evaluation[image_name] = {
                "red": red,
                "blue": blue,
                "error": error,
                "red_ok": red_ok,
                "blue_ok": blue_ok,
                "within_tolerance": red_ok and blue_ok,
            }
            total_error += abs(error)

        logging.info("Total absolute error %.1f", total_error)
        return evaluation, total_error


def within_tolerance(count, expected, tolerance):
    if expected == 0:
        return count == 0
    return 1 - tolerance <= count / expected <= 1 + tolerance
