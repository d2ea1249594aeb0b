#!/usr/bin/env python

###
#draws styled subtitle plates onto rendered frames
###

import os
import PIL.Image
import PIL.ImageDraw
import PIL.ImageFont
import PIL.features
from vidasmlib.core import errors
from vidasmlib.core.models import SubtitleStyle

#===============================

SIZE_FACTORS = {
	'small': 0.035,
	'medium': 0.045,
	'large': 0.06,
}

FONT_FAMILIES = {
	'default': (
		"DejaVuSans-Bold.ttf",
		"LiberationSans-Bold.ttf",
		"Arial Bold.ttf",
		"Arial.ttf",
		"FreeSansBold.ttf",
		"DejaVuSans.ttf",
	),
	'arabic': (
		"NotoNaskhArabic-Bold.ttf",
		"NotoNaskhArabic-Regular.ttf",
		"Amiri-Bold.ttf",
		"Amiri-Regular.ttf",
		"NotoKufiArabic-Bold.ttf",
		"NotoSansArabic-Bold.ttf",
		"DejaVuSans-Bold.ttf",
		"DejaVuSans.ttf",
	),
	'modern': (
		"Inter-Bold.ttf",
		"Roboto-Bold.ttf",
		"OpenSans-Bold.ttf",
		"Montserrat-Bold.ttf",
		"LiberationSans-Bold.ttf",
		"DejaVuSans-Bold.ttf",
	),
}

FONT_DIRS = (
	"/usr/share/fonts",
	"/usr/local/share/fonts",
	os.path.expanduser("~/.fonts"),
	os.path.expanduser("~/.local/share/fonts"),
	"/Library/Fonts",
	"/System/Library/Fonts",
	"C:\\Windows\\Fonts",
)

_FONT_INDEX = None

#===============================
def _font_index() -> dict:
	"""Map lowercase font filenames to paths across the system font dirs."""
	global _FONT_INDEX
	if _FONT_INDEX is not None:
		return _FONT_INDEX
	index = {}
	for base in FONT_DIRS:
		if not os.path.isdir(base):
			continue
		for root, dirs, files in os.walk(base):
			dirs[:] = sorted(dirs)
			for name in sorted(files):
				lower = name.lower()
				if lower.endswith((".ttf", ".otf")) and lower not in index:
					index[lower] = os.path.join(root, name)
	_FONT_INDEX = index
	return index

#===============================
def find_font_file(candidates: tuple) -> str:
	index = _font_index()
	for name in candidates:
		path = index.get(name.lower())
		if path is not None:
			return path
	return None

#===============================
def letterbox_rect(src_width: int, src_height: int, canvas_width: int,
	canvas_height: int) -> tuple:
	"""
	Center-fit a source frame inside the canvas, preserving aspect ratio.

	Returns (x, y, width, height) in whole pixels.
	"""
	if src_width <= 0 or src_height <= 0:
		raise RuntimeError("source frame size must be positive")
	video_aspect = src_width / src_height
	canvas_aspect = canvas_width / canvas_height
	if video_aspect > canvas_aspect:
		draw_width = canvas_width
		draw_height = max(1, int(round(canvas_width / video_aspect)))
	else:
		draw_height = canvas_height
		draw_width = max(1, int(round(canvas_height * video_aspect)))
	draw_x = (canvas_width - draw_width) // 2
	draw_y = (canvas_height - draw_height) // 2
	return (draw_x, draw_y, draw_width, draw_height)

#===============================
class SubtitleOverlay(object):
	def __init__(self, style: SubtitleStyle, canvas_size: tuple):
		self.style = style
		self.width, self.height = canvas_size
		self.padding_x = 24
		self.padding_y = 12
		self.radius = 8
		self.stroke_width = 2
		self.plate_color = (0, 0, 0, 204)
		self.text_color = (255, 255, 255, 255)
		self.stroke_color = (0, 0, 0, 255)
		self.margin = int(round(self.height / 12.0))
		self.font_size = self._font_size()
		self.has_raqm = PIL.features.check_feature("raqm")
		self._fonts = {}
		self._plates = {}

	#===============================
	def _font_size(self) -> int:
		factor = SIZE_FACTORS.get(self.style.size)
		if factor is None:
			raise RuntimeError(f"unknown subtitle size {self.style.size}")
		return max(8, int(round(self.height * factor)))

	#===============================
	def family_for(self, cue) -> str:
		if self.style.font == 'default' and cue.is_rtl:
			return 'arabic'
		return self.style.font

	#===============================
	def load_font(self, family: str):
		if family in self._fonts:
			return self._fonts[family]
		if self.style.font_file is not None:
			if not os.path.exists(self.style.font_file):
				raise errors.ConfigParseError(
					f"subtitle font file not found: {self.style.font_file}")
			font = PIL.ImageFont.truetype(self.style.font_file, self.font_size)
		else:
			candidates = FONT_FAMILIES.get(family)
			if candidates is None:
				raise RuntimeError(f"unknown subtitle font family {family}")
			font_path = find_font_file(candidates)
			if font_path is not None:
				font = PIL.ImageFont.truetype(font_path, self.font_size)
			else:
				try:
					font = PIL.ImageFont.truetype("DejaVuSans-Bold.ttf", self.font_size)
				except OSError:
					font = PIL.ImageFont.load_default(size=self.font_size)
		self._fonts[family] = font
		return font

	#===============================
	def _text_options(self, cue) -> dict:
		options = {'align': 'center', 'stroke_width': self.stroke_width}
		if cue.is_rtl and self.has_raqm:
			options['direction'] = 'rtl'
		return options

	#===============================
	def plate_origin(self, plate_width: int, plate_height: int) -> tuple:
		x = int(round((self.width - plate_width) / 2.0))
		if self.style.position == 'top':
			y = self.margin
		elif self.style.position == 'center':
			y = int(round((self.height - plate_height) / 2.0))
		elif self.style.position == 'bottom':
			y = self.height - self.margin - plate_height
		else:
			raise RuntimeError(f"unknown subtitle position {self.style.position}")
		return (x, y)

	#===============================
	def clear_plates(self) -> None:
		"""Drop cached plates; cue text rarely repeats across scenes."""
		self._plates.clear()

	#===============================
	def render_plate(self, cue) -> tuple:
		"""Build the RGBA plate for a cue and where it goes on the canvas."""
		key = (cue.text, cue.is_rtl)
		if key in self._plates:
			return self._plates[key]
		font = self.load_font(self.family_for(cue))
		options = self._text_options(cue)
		scratch = PIL.ImageDraw.Draw(PIL.Image.new("RGBA", (1, 1)))
		bbox = scratch.multiline_textbbox((0, 0), cue.text, font=font, **options)
		text_width = bbox[2] - bbox[0]
		text_height = bbox[3] - bbox[1]
		plate_width = text_width + self.padding_x * 2
		plate_height = text_height + self.padding_y * 2
		plate = PIL.Image.new("RGBA", (plate_width, plate_height), (0, 0, 0, 0))
		draw = PIL.ImageDraw.Draw(plate)
		draw.rounded_rectangle([0, 0, plate_width - 1, plate_height - 1],
			radius=self.radius, fill=self.plate_color)
		text_origin = (self.padding_x - bbox[0], self.padding_y - bbox[1])
		draw.multiline_text(text_origin, cue.text, font=font,
			fill=self.text_color, stroke_fill=self.stroke_color, **options)
		result = (plate, self.plate_origin(plate_width, plate_height))
		self._plates[key] = result
		return result

	#===============================
	def apply(self, image, cue) -> None:
		plate, origin = self.render_plate(cue)
		image.paste(plate, origin, plate)
