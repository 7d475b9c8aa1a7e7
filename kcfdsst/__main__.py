"""
Run the tracker on a video file or camera and show the result.

    python -m kcfdsst person1.mp4 --box 120 80 40 90
    python -m kcfdsst 0              # camera index, pick the box with the mouse

Press ESC to quit.
"""
import argparse
import logging
import sys
import time

import cv2

from kcfdsst import KCFTracker


def _open_source(source: str) -> cv2.VideoCapture:
    return cv2.VideoCapture(int(source) if source.isdigit() else source)


def run(args: argparse.Namespace) -> int:
    cap = _open_source(args.source)
    if not cap.isOpened():
        print(f"Error: Could not open video source {args.source}")
        return 1

    ret, frame = cap.read()
    if not ret:
        print(f"Error: Could not read a first frame from {args.source}")
        cap.release()
        return 1

    if args.box:
        roi = tuple(args.box)
    else:
        roi = cv2.selectROI("KCF Tracker", frame, showCrosshair=True, fromCenter=False)

    tracker = KCFTracker(hog=not args.gray, fixed_window=not args.roi_window,
                         multiscale=not args.no_scale, lab=args.lab)
    tracker.init(roi, frame)

    fps_start_time = time.time()
    fps_frame_count = 0
    fps = 0.0

    while True:
        ret, frame = cap.read()
        if not ret:
            break

        x, y, w, h = (int(v) for v in tracker.update(frame).as_tuple())
        cv2.rectangle(frame, (x, y), (x + w, y + h), (0, 255, 0), 2)

        # Calculate and display FPS
        fps_frame_count += 1
        if (time.time() - fps_start_time) > 1:
            fps = fps_frame_count / (time.time() - fps_start_time)
            fps_frame_count = 0
            fps_start_time = time.time()

        cv2.putText(frame, f"FPS: {fps:.2f}  peak: {tracker.peak_value:.2f}", (10, 30),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.8, (0, 0, 255), 2)

        if args.headless:
            print(f"{x},{y},{w},{h}")
            continue

        cv2.imshow("KCF Tracker", frame)
        if cv2.waitKey(1) & 0xFF == 27:  # Press 'ESC' to exit
            break

    cap.release()
    cv2.destroyAllWindows()
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="KCF + DSST single-target tracker demo")
    parser.add_argument("source", help="video file path or camera index")
    parser.add_argument("--box", type=float, nargs=4, metavar=("X", "Y", "W", "H"),
                        help="initial box; selected interactively when omitted")
    parser.add_argument("--gray", action="store_true", help="raw gray features instead of HOG")
    parser.add_argument("--lab", action="store_true", help="add colour-attribute channels to HOG")
    parser.add_argument("--no-scale", action="store_true", help="disable scale estimation")
    parser.add_argument("--roi-window", action="store_true",
                        help="use the padded ROI size as template (single scale only)")
    parser.add_argument("--headless", action="store_true",
                        help="print boxes as x,y,w,h instead of opening a window")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    return run(args)


if __name__ == "__main__":
    sys.exit(main())
