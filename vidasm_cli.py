#!/usr/bin/env python3

import argparse
import sys
import yaml
from vidasmlib.core import errors
from vidasmlib.core import utils
from vidasmlib.core.models import RESOLUTIONS
from vidasmlib.core.models import SUBTITLE_FONTS
from vidasmlib.core.models import SUBTITLE_POSITIONS
from vidasmlib.core.models import SUBTITLE_SIZES
from vidasmlib.core.project import AssemblyProject
from vidasmlib.media.engine import EngineContext

#============================================

def parse_args():
	"""
	Parse command-line arguments.
	"""
	parser = argparse.ArgumentParser(
		description="Assemble scene clips, narration and subtitles into one video")
	parser.add_argument('-b', '--bundle', dest='bundle', required=True,
		help='zip archive or directory holding the media and scene document')
	parser.add_argument('-d', '--document', dest='document',
		help='scene document to use instead of the one inside the bundle')
	parser.add_argument('-o', '--output', dest='output_file',
		help='output file, default assembled-video.<ext>')
	parser.add_argument('-r', '--resolution', dest='resolution',
		choices=tuple(RESOLUTIONS.keys()), help='output resolution')
	parser.add_argument('-m', '--sync-mode', dest='sync_mode',
		choices=('trim', 'speed'),
		help='how to fit video that runs longer than its narration')
	parser.add_argument('--fps', dest='fps', type=int, help='output frame rate')
	parser.add_argument('--position', dest='position', choices=SUBTITLE_POSITIONS,
		help='subtitle position')
	parser.add_argument('--size', dest='size', choices=SUBTITLE_SIZES,
		help='subtitle size')
	parser.add_argument('--font', dest='font', choices=SUBTITLE_FONTS,
		help='subtitle font family')
	parser.add_argument('--font-file', dest='font_file',
		help='explicit TTF/OTF font file for subtitles')
	parser.add_argument('--offset', dest='offset', type=float,
		help='subtitle timing offset in seconds (-5 to 5)')
	parser.add_argument('-s', '--subtitle-track', dest='subtitle_track',
		help='shared subtitle track spanning all scenes')
	parser.add_argument('-n', '--dry-run', dest='dry_run', action='store_true',
		help='plan only, do not render')
	parser.add_argument('-p', '--dump-plan', dest='dump_plan', action='store_true',
		help='print the resolved scene plan as yaml')
	parser.add_argument('-c', '--cache-dir', dest='cache_dir',
		help='directory for temporary render files')
	parser.add_argument('-k', '--keep-temp', dest='keep_temp',
		help='keep temporary render files', action='store_true')
	parser.add_argument('-K', '--no-keep-temp', dest='keep_temp',
		help='remove temporary render files', action='store_false')
	parser.add_argument('-q', '--quiet', dest='quiet', action='store_true',
		help='suppress command echo and progress output')
	parser.set_defaults(keep_temp=False)
	args = parser.parse_args()
	return args

#============================================

def build_overrides(args) -> dict:
	overrides = {
		'resolution': args.resolution,
		'sync_mode': args.sync_mode,
		'fps': args.fps,
		'position': args.position,
		'size': args.size,
		'font': args.font,
		'font_file': args.font_file,
		'offset': args.offset,
		'subtitle_track': args.subtitle_track,
	}
	return {key: value for key, value in overrides.items() if value is not None}

#============================================

def main():
	args = parse_args()
	utils.set_quiet_mode(args.quiet)
	engine = EngineContext()
	try:
		project = AssemblyProject(args.bundle, document_path=args.document,
			overrides=build_overrides(args), engine=engine, cache_dir=args.cache_dir,
			keep_temp=args.keep_temp, dry_run=args.dry_run)
		if args.dump_plan:
			try:
				plan = project.plan_summary()
			finally:
				project.cleanup()
			print(yaml.safe_dump(plan, sort_keys=False, allow_unicode=True))
			return
		result = project.run(args.output_file)
		if result is not None and args.output_file is None:
			project.write_output(result, f"assembled-video.{result.extension}")
	except errors.VidasmError as exc:
		print(f"ERROR: {exc}")
		sys.exit(1)


if __name__ == '__main__':
	main()
