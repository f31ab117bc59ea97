"""Shift-invariant blur operators."""

from sparsa_video.physics.convolution.convolution_operator import ConvolutionOperator, gaussian_psf

__all__ = ["ConvolutionOperator", "gaussian_psf"]
