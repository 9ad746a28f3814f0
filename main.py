import mimetypes
from pathlib import Path

from dealcompare.errors import ComparisonError
from dealcompare.intake import UploadedImage
from dealcompare.synthesizer import (
    initialize_synthesizer,
    format_best_deal,
    format_display_results
)

def read_image(path_text: str):
    """Wrap a local image path the way an upload is passed to the synthesizer."""
    if not path_text:
        return None
    path = Path(path_text).expanduser()
    if not path.is_file():
        print(f"\nImage not found: {path}")
        return None
    mime_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    return UploadedImage(path=str(path), mime_type=mime_type, filename=path.name)

if __name__ == "__main__":
    config, synthesizer = initialize_synthesizer()

    while True:
        product_name = input("\nWhat product are you looking for? (or 'quit' to exit): ").strip()
        if product_name.lower() == 'quit':
            break

        vendors_input = input("Which vendors should be compared? (comma-separated): ").strip()
        vendors = [v.strip() for v in vendors_input.split(",") if v.strip()]
        image = read_image(input("Path to a product image (optional): ").strip())

        if not product_name and image is None:
            print("\nPlease enter a product name or an image path.")
            continue

        try:
            result = synthesizer.synthesize(product_name, image, vendors)
        except ComparisonError as e:
            print(f"\nCould not fetch comparison data: {e.message}")
            continue

        print(format_best_deal(result))
        print(format_display_results(result))
