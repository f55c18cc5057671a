"""
Inference Adapter - plant disease classification.

Local ONNX model first, the bridge's /predict endpoint when no model is
loaded, and a uniformly random class as the last resort. Callers always get
a Prediction back; failures only downgrade its source.
"""
import base64
import binascii
import io
import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional, Union

import numpy as np
import onnxruntime as ort
from PIL import Image, UnidentifiedImageError

from .bridge import BridgeError
from .config import CLASSES, HEALTHY_CLASS, MODEL
from .connectivity import ConnectivityMonitor
from .schema import AdviceEntry, Prediction

log = logging.getLogger(__name__)


class ModelLoadError(Exception):
    """Model file missing or not loadable."""


class InferenceError(Exception):
    """Image could not be decoded or the forward pass failed."""


# ─────────────────────────────────────────────────────────────────────────────
# ADVICE
# ─────────────────────────────────────────────────────────────────────────────

HEALTHY_ADVICE = AdviceEntry(
    "Your tomato plant appears healthy! Continue with regular care and monitoring."
)

# Checked in this order; first substring match wins
DISEASE_ADVICE = [
    ("Bacterial_spot", AdviceEntry(
        "Bacterial spot detected. Remove infected leaves, improve air circulation, and apply "
        "copper-based fungicide. Keep foliage dry when watering.")),
    ("Early_blight", AdviceEntry(
        "Early blight detected. Remove infected leaves, apply fungicide, and ensure proper "
        "spacing between plants for air circulation.")),
    ("Late_blight", AdviceEntry(
        "Late blight detected! This is serious. Remove infected plants immediately to prevent "
        "spread. Apply fungicide to remaining plants and ensure good drainage.")),
    ("Leaf_Mold", AdviceEntry(
        "Leaf mold detected. Improve air circulation, reduce humidity, and apply fungicide. "
        "Avoid overhead watering.")),
    ("Septoria_leaf_spot", AdviceEntry(
        "Septoria leaf spot detected. Remove infected leaves, apply fungicide, and avoid "
        "overhead watering. Mulch around plants to prevent soil splash.")),
    ("Target_Spot", AdviceEntry(
        "Target spot detected. Apply fungicide, remove infected leaves, and improve air "
        "circulation. Avoid overhead watering.")),
    ("YellowLeaf__Curl_Virus", AdviceEntry(
        "Tomato Yellow Leaf Curl Virus detected. This is spread by whiteflies. Remove infected "
        "plants, control whitefly population, and use reflective mulch.")),
    ("Spider_mites", AdviceEntry(
        "Spider mites detected. Spray plants with water to dislodge mites, apply insecticidal "
        "soap or neem oil. Increase humidity around plants.",
        irrigation_recommended=True)),
    ("mosaic_virus", AdviceEntry(
        "Tomato mosaic virus detected. Remove and destroy infected plants. Disinfect tools and "
        "wash hands after handling. There is no cure for this virus.")),
]

NO_ADVICE = AdviceEntry("")


def lookup_advice(label: str) -> AdviceEntry:
    if label == HEALTHY_CLASS:
        return HEALTHY_ADVICE
    for key, advice in DISEASE_ADVICE:
        if key in label:
            return advice
    return NO_ADVICE


# ─────────────────────────────────────────────────────────────────────────────
# MODEL
# ─────────────────────────────────────────────────────────────────────────────

class TensorScope:
    """Holds intermediate arrays for one forward pass and drops them on exit."""

    def __init__(self):
        self.tensors: List[np.ndarray] = []

    def keep(self, tensor: np.ndarray) -> np.ndarray:
        self.tensors.append(tensor)
        return tensor

    def release(self):
        self.tensors.clear()


@contextmanager
def tensor_scope() -> Iterator[TensorScope]:
    scope = TensorScope()
    try:
        yield scope
    finally:
        scope.release()


def load_model(path: Optional[str] = None) -> ort.InferenceSession:
    path = path or MODEL.path
    try:
        return ort.InferenceSession(path, providers=["CPUExecutionProvider"])
    except Exception as e:
        raise ModelLoadError(f"Failed to load model from {path}: {e}") from e


def strip_data_url(image: str) -> str:
    """Bare base64 payload of a data URL (or the string itself)."""
    return image.split(",", 1)[1] if image.startswith("data:") else image


def encode_image(image: Image.Image, fmt: str = "JPEG") -> str:
    """PIL image -> data URL."""
    buffered = io.BytesIO()
    image.convert("RGB").save(buffered, format=fmt)
    image_b64 = base64.b64encode(buffered.getvalue()).decode("utf-8")
    return f"data:image/{fmt.lower()};base64,{image_b64}"


def decode_image(image: Union[str, bytes, Image.Image]) -> Image.Image:
    """Accept a data URL, a base64 string, raw bytes or a PIL image."""
    if isinstance(image, Image.Image):
        return image.convert("RGB")
    try:
        raw = image if isinstance(image, bytes) else base64.b64decode(strip_data_url(image), validate=True)
        return Image.open(io.BytesIO(raw)).convert("RGB")
    except (binascii.Error, ValueError, UnidentifiedImageError, OSError) as e:
        raise InferenceError(f"Could not decode image: {e}") from e


def preprocess(image: Image.Image, input_size: tuple = MODEL.input_size) -> np.ndarray:
    """Resize to the model input, scale to [0, 1], add a batch dimension -> (1, H, W, 3)."""
    h, w = input_size
    resized = image.convert("RGB").resize((w, h), Image.Resampling.BILINEAR)
    tensor = np.asarray(resized, dtype=np.float32) / 255.0
    return np.expand_dims(tensor, axis=0)


def classify(model, image: Union[str, bytes, Image.Image], labels: List[str] = CLASSES) -> str:
    """Forward pass and arg-max; np.argmax picks the lowest index on ties."""
    with tensor_scope() as scope:
        try:
            pil = decode_image(image)
            batch = scope.keep(preprocess(pil))
            input_name = model.get_inputs()[0].name
            output = scope.keep(np.asarray(model.run(None, {input_name: batch})[0]))
        except InferenceError:
            raise
        except Exception as e:
            raise InferenceError(f"Model forward pass failed: {e}") from e
        scores = output.reshape(-1)
        if scores.size != len(labels):
            raise InferenceError(f"Model produced {scores.size} outputs for {len(labels)} classes")
        return labels[int(np.argmax(scores))]


# ─────────────────────────────────────────────────────────────────────────────
# ADAPTER
# ─────────────────────────────────────────────────────────────────────────────

class InferenceAdapter:
    """Model held once per session plus the remote/random fallback chain."""

    def __init__(
        self,
        monitor: ConnectivityMonitor,
        model_path: Optional[str] = None,
        seed: Optional[int] = None,
    ):
        self.monitor = monitor
        self.model_path = model_path or MODEL.path
        self.model = None
        self.load_error: Optional[str] = None
        self.rng = np.random.default_rng(seed)

    @property
    def model_loaded(self) -> bool:
        return self.model is not None

    def load(self) -> bool:
        """Try the local model once; failure is logged and tolerated."""
        try:
            self.model = load_model(self.model_path)
            log.info(f"Local model loaded from {self.model_path}")
            return True
        except ModelLoadError as e:
            self.model = None
            self.load_error = str(e)
            log.warning(f"{e}. Will use API fallback")
            return False

    def random_label(self) -> str:
        return CLASSES[int(self.rng.integers(len(CLASSES)))]

    def _result(self, label: str, source: str, placeholder: bool = False) -> Prediction:
        return Prediction(label=label, source=source, advice=lookup_advice(label), placeholder=placeholder)

    async def predict(self, image: str) -> Prediction:
        if self.model is not None:
            try:
                return self._result(classify(self.model, image), "local")
            except InferenceError as e:
                log.warning(f"Local inference failed, using placeholder result: {e}")
                return self._result(self.random_label(), "random", placeholder=True)

        if self.monitor.is_live:
            try:
                label = await self.monitor.client.predict(strip_data_url(image))
                if label in CLASSES:
                    return self._result(label, "remote")
                log.warning(f"Bridge returned unknown class '{label}'")
            except BridgeError as e:
                self.monitor.on_fetch_error(e)

        log.warning("No classifier available, using placeholder result")
        return self._result(self.random_label(), "random", placeholder=True)
